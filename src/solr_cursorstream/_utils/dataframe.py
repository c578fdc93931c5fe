"""DataFrame conversion utilities."""

from typing import Iterable, Optional, Sequence

import pandas as pd


def records_to_dataframe(
    records: Iterable[dict],
    columns: Optional[Sequence[str]] = None,
    parse_dates: Sequence[str] = (),
) -> pd.DataFrame:
    """
    Convert iterable of Solr documents to pandas DataFrame.

    Args:
        records: Iterable of dictionaries (e.g., from CursorStream.documents())
        columns: Column order; fields missing from a document become NaN
        parse_dates: Fields to convert to datetime (Solr dates are ISO-8601 UTC)

    Returns:
        pandas DataFrame with all records

    Example:
        records = [{"id": "1", "created": "2024-01-01T00:00:00Z"}]
        df = records_to_dataframe(records, parse_dates=["created"])
        print(df.dtypes)  # created is datetime64[ns, UTC]
    """
    df = pd.DataFrame(list(records), columns=list(columns) if columns else None)

    if df.empty:
        return df

    for name in parse_dates:
        if name in df.columns:
            df[name] = pd.to_datetime(df[name], utc=True)

    return df
