import argparse
import json
import sys
from datetime import date, timedelta
from pathlib import Path

import pandas as pd

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
from tsforecast.config import configure_logging, get_settings
from tsforecast.forecasting import forecast, forecast_with_best_method
from tsforecast.utils.date_utils import series_from_pandas
from tsforecast.utils.exceptions import ForecastError

SAMPLE_VALUES = [
    15, 18, 12, 20, 22, 16, 10, 14, 19, 21,
    17, 13, 11, 16, 20, 23, 18, 14, 12, 15,
    19, 22, 20, 16, 13, 17, 21, 24, 19, 15,
]


def sample_series():
    start = date(2024, 1, 1)
    return [(start + timedelta(days=i), value) for i, value in enumerate(SAMPLE_VALUES)]


def load_series(path, date_column, value_column):
    frame = pd.read_csv(path)
    return series_from_pandas(frame, date_column=date_column, value_column=value_column)


def main(argv=None):
    parser = argparse.ArgumentParser(description='Forecast a univariate time series')
    parser.add_argument('--csv', help='CSV file with date and value columns (default: built-in sample)')
    parser.add_argument('--date-column', default='date')
    parser.add_argument('--value-column', default='value')
    parser.add_argument('--method', default='auto', choices=['auto', 'linear', 'exp_smoothing', 'arima'])
    parser.add_argument('--best-of-three', action='store_true', help='Pick the method by holdout error')
    parser.add_argument('--periods', type=int, default=7)
    parser.add_argument('--period-unit', default='days', choices=['days', 'weeks', 'months'])
    parser.add_argument('--confidence-level', type=float, default=None)
    parser.add_argument('--no-interval', action='store_true')
    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format)

    series = load_series(args.csv, args.date_column, args.value_column) if args.csv else sample_series()
    options = {
        'method': args.method,
        'periods': args.periods,
        'period_unit': args.period_unit,
        'confidence_interval': not args.no_interval,
    }
    if args.confidence_level is not None:
        options['confidence_level'] = args.confidence_level

    try:
        if args.best_of_three:
            result = forecast_with_best_method(series, options, settings=settings)
        else:
            result = forecast(series, options, settings=settings)
    except ForecastError as e:
        print(json.dumps(e.to_dict(), indent=2, default=str), file=sys.stderr)
        return 1

    print(json.dumps(result.to_dict(), indent=2, default=str))
    return 0

if __name__ == '__main__':
    sys.exit(main())
