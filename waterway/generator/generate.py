import datetime as dt
import json

from waterway.common.config import settings
from waterway.common.simulator import seed_history, simulate_day


def main() -> None:
    today = dt.date.today()
    history = seed_history(
        days=settings.trend_window_size - 1,
        today=today - dt.timedelta(days=1),
    )
    history.append(simulate_day(day=today))
    for point in history:
        print(json.dumps(point.model_dump(mode="json")))


if __name__ == "__main__":
    main()
