"""
Data transformation and formatting utilities.

Helpers for turning filter trajectories into pandas DataFrames and for
rendering numeric sequences as the space-separated text used by external
loggers and visualizers.
"""

import numpy as np
import pandas as pd


def build_timeseries(data, cols, delta_t):
    """
    Convert a step-indexed array to a DataFrame with a time index.

    Parameters
    ----------
    data : ndarray
        Input array whose first column holds the integer filter step.
    cols : list of str
        Column names for the DataFrame. First column should be 'step'.
    delta_t : float
        Time between filter steps (s), used to build the time index.

    Returns
    -------
    pandas.DataFrame
        DataFrame indexed by elapsed time (``timedelta``) named 'stamp',
        with the step kept as an integer column.

    Examples
    --------
    >>> data = np.array([[0, 0.0, 0.0, 0.0], [1, 0.1, 0.0, 0.01]])
    >>> df = build_timeseries(data, ["step", "x", "y", "theta"], delta_t=0.1)
    >>> list(df.columns)
    ['step', 'x', 'y', 'theta']
    """
    timeseries = pd.DataFrame(np.asarray(data).reshape(-1, len(cols)), columns=cols)
    timeseries["step"] = timeseries["step"].astype(int)
    timeseries["stamp"] = pd.to_timedelta(timeseries["step"] * delta_t, unit="s")
    timeseries = timeseries.set_index("stamp")
    return timeseries


def format_sequence(values):
    """
    Render numbers as a space-separated string with no trailing separator.

    Integers are written as integers and floats with ``repr`` precision, so
    parsing the text back yields the same values.

    Examples
    --------
    >>> format_sequence([1, 5, 12])
    '1 5 12'
    >>> format_sequence([0.5, 10.25])
    '0.5 10.25'
    >>> format_sequence([])
    ''
    """
    parts = []
    for value in values:
        if isinstance(value, (int, np.integer)) and not isinstance(value, bool):
            parts.append(str(int(value)))
        else:
            parts.append(repr(float(value)))
    return " ".join(parts)

