"""Load raw results into pandas DataFrames."""
import logging
from typing import Any

import pandas as pd
from dbmap.cancellation import CancellationToken
from dbmap.cursor import ResultCursor, ResultOptions
from dbmap.executor import Configure, query_raw

__all__ = ['load_frame', 'query_frame']

logger = logging.getLogger(__name__)


def load_frame(cursor: ResultCursor) -> pd.DataFrame:
    """Read the remaining rows of the current result set into a DataFrame.

    Always returns a DataFrame, with columns preserved for empty results.
    """
    columns = list(cursor.columns)
    rows = list(cursor)
    if not rows:
        return pd.DataFrame(columns=columns)
    return pd.DataFrame.from_records(rows, columns=columns)


def query_frame(cn: Any, sql: str, *parameters: Any,
                configure: Configure | None = None,
                cancel: CancellationToken | None = None) -> pd.DataFrame:
    """Execute a query and return its first result set as a DataFrame.
    """
    with query_raw(cn, sql, *parameters, options=ResultOptions.SINGLE_RESULT,
                   configure=configure, cancel=cancel) as cursor:
        df = load_frame(cursor)
    logger.debug(f'Loaded frame with {len(df)} row(s) and {len(df.columns)} column(s)')
    return df
