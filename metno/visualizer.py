import pandas as pd

from metno.forecast import Forecast
from metno.utils import format_location


class ForecastVisualizer:
    COLUMNS = {
        'air_temperature': 'Temp',
        'wind_speed': 'Wind',
        'wind_from_direction': 'Dir',
        'relative_humidity': 'RH',
        'cloud_area_fraction': 'Cloud',
    }

    @staticmethod
    def to_dataframe(forecast: Forecast) -> pd.DataFrame:
        """One row per forecast time, indexed by UTC time."""
        rows = []
        for step in forecast.timeseries:
            row = {'time': step.time}
            for field in ForecastVisualizer.COLUMNS:
                row[field] = step.details.get(field)
            row['precipitation_amount'] = step.precipitation_amount(1)
            row['symbol_code'] = step.symbol_code(1)
            rows.append(row)

        columns = ['time', *ForecastVisualizer.COLUMNS, 'precipitation_amount', 'symbol_code']
        df = pd.DataFrame(rows, columns=columns).set_index('time')
        df.index = df.index.rename('UTC time')

        lon, lat = forecast.coordinates[0], forecast.coordinates[1]
        df.attrs['latitude'] = lat
        df.attrs['longitude'] = lon
        df.attrs['updated_at'] = forecast.updated_at
        return df

    @staticmethod
    def format_table(forecast: Forecast, hours: int = 24) -> str:
        df = ForecastVisualizer.to_dataframe(forecast).head(hours)

        def cell(value, fmt):
            return f'{"--":>6}' if pd.isna(value) else format(value, fmt)

        lines = []
        lon, lat = forecast.coordinates[0], forecast.coordinates[1]
        lines.append(f"\n{format_location(lat, lon)} (updated {forecast.updated_at:%Y-%m-%d %H:%M} UTC)")
        lines.append(f"{'Time':>16} {'Temp':>6} {'Wind':>6} {'Dir':>6} {'RH':>6} {'Cloud':>6} {'Precip':>6}  Symbol")
        lines.append("-" * 80)

        for time, row in df.iterrows():
            lines.append(
                f"{time:%Y-%m-%d %H:%M} "
                f"{cell(row['air_temperature'], '6.1f')} "
                f"{cell(row['wind_speed'], '6.1f')} "
                f"{cell(row['wind_from_direction'], '6.0f')} "
                f"{cell(row['relative_humidity'], '6.0f')} "
                f"{cell(row['cloud_area_fraction'], '6.0f')} "
                f"{cell(row['precipitation_amount'], '6.1f')}  "
                f"{'--' if pd.isna(row['symbol_code']) else row['symbol_code']}"
            )
        return '\n'.join(lines)
