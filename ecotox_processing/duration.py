'''
This module converts ECOTOX observation durations to days.

The duration unit codes in ECOTOX are not all directly usable; there are
codes such as 'hpf' (hours post fertilization) next to 'h'. The human-readable
unit description (e.g., 'Hour(s)', 'Hours post-fertilization') is therefore
used to classify each unit code into a time category, and the mapping from
unit code to category is derived from the data of the current run.
'''

import operator
import pandas as pd

from .sentinels import SENTINEL

# (category, description keyword, operation, factor), applied in this order
DURATION_CATEGORIES = [
    ('second', 'Sec', operator.truediv, 86400.),
    ('minute', 'Min', operator.truediv, 1440.),
    ('hour', 'Hour', operator.truediv, 24.),
    ('day', 'Day', operator.mul, 1.),
    ('week', 'Week', operator.mul, 7.),
    ('month', 'Month', operator.mul, 30.),
    ('year', 'Year', operator.mul, 365.),
]

#region: classify_description
def classify_description(description):
    '''
    Return the time category of a unit description, or None.

    The description matches a category if it starts with the category
    keyword, ignoring case and surrounding whitespace.

    Examples
    --------
    >>> classify_description('Hour(s)')
    'hour'
    >>> classify_description('days post-hatch')
    'day'
    '''
    if pd.isna(description):
        return None
    text = str(description).strip().lower()
    for category, keyword, _, _ in DURATION_CATEGORIES:
        if text.startswith(keyword.lower()):
            return category
    return None
#endregion

#region: duration_unit_categories
def duration_unit_categories(units, descriptions):
    '''
    Build the mapping from unit code to time category for the current data.

    If a unit code appears with descriptions of several categories, the
    category that comes last in `DURATION_CATEGORIES` is retained.

    Parameters
    ----------
    units : pandas.Series
        Duration unit codes (e.g., 'h', 'hpf', 'd').
    descriptions : pandas.Series
        Corresponding unit descriptions.

    Returns
    -------
    dict
    '''
    categories = descriptions.map(classify_description)

    category_for_unit = {}  # initialize
    for category, _, _, _ in DURATION_CATEGORIES:
        where_category = categories == category
        for unit in units.loc[where_category].dropna().unique():
            category_for_unit[unit] = category

    return category_for_unit
#endregion

#region: normalize_duration
def normalize_duration(
        magnitude,
        unit_description,
        unit=None,
        category_for_unit=None
        ):
    '''
    Convert a single duration to days.

    Parameters
    ----------
    magnitude : float or str
    unit_description : str
        Description of the duration unit (e.g., 'Hour(s)').
    unit : str, optional
        Duration unit code (e.g., 'h').
    category_for_unit : dict, optional
        Mapping from unit code to time category, as returned by
        `duration_unit_categories`. If both `unit` and this mapping are given
        and the mapping contains the unit, its category is used, so that a
        scalar conversion agrees with `convert_to_days`. Otherwise the
        category is taken from the description.

    Returns
    -------
    float
        The duration in days; the sentinel if the magnitude is not numeric
        or no time category applies.

    Examples
    --------
    >>> normalize_duration('48', 'Hour(s)')
    2.0
    >>> normalize_duration('48', 'Hours post-hatch', 'd', {'d': 'day'})
    48.0
    '''
    if category_for_unit is not None and unit in category_for_unit:
        category = category_for_unit[unit]
    else:
        category = classify_description(unit_description)
    try:
        magnitude = float(magnitude)
    except (TypeError, ValueError):
        return float(SENTINEL)
    if category is None or pd.isna(magnitude):
        return float(SENTINEL)

    for name, _, operation, factor in DURATION_CATEGORIES:
        if name == category:
            return operation(magnitude, factor)
#endregion

#region: convert_to_days
def convert_to_days(durations, units, descriptions):
    '''
    Convert durations to days, vectorized over records.

    Parameters
    ----------
    durations : pandas.Series
        Duration magnitudes. Non-numeric entries are coerced to missing.
    units : pandas.Series
        Duration unit codes, aligned with `durations`.
    descriptions : pandas.Series
        Unit descriptions, aligned with `durations`.

    Returns
    -------
    days : pandas.Series
        Durations in days, or the sentinel where not convertible.
    report : dict
        'n_unconverted', 'n_non_numeric', 'unconverted_descriptions', and
        'unconverted_units' (distinct, sorted).
    '''
    magnitudes = pd.to_numeric(durations, errors='coerce')
    unit_categories = units.map(duration_unit_categories(units, descriptions))

    days = pd.Series(float(SENTINEL), index=durations.index)
    where_converted = pd.Series(False, index=durations.index)

    for category, _, operation, factor in DURATION_CATEGORIES:
        where_category = (unit_categories == category) & magnitudes.notna()
        days.loc[where_category] = operation(
            magnitudes.loc[where_category],
            factor
            )
        where_converted = where_converted | where_category

    where_unconverted = ~where_converted
    report = {
        'n_unconverted': int(where_unconverted.sum()),
        'n_non_numeric': int(magnitudes.isna().sum()),
        'unconverted_descriptions': _distinct(
            descriptions.loc[where_unconverted]
            ),
        'unconverted_units': _distinct(units.loc[where_unconverted])
    }

    return days, report
#endregion

#region: _distinct
def _distinct(series):
    '''Sorted list of the distinct non-missing values as strings.'''
    return sorted(series.dropna().astype(str).unique())
#endregion
