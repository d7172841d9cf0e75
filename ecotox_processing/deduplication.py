'''
This module removes duplicate observations from the normalized ECOTOX
records.

Records sharing the identity key describe the same study, species, chemical,
and endpoint, even if they differ in test ID or exposure duration. A
deterministic sort fixes which record of such a group is retained: the
longest exposure, tie-broken by the lowest concentration.
'''

import pandas as pd

from .sentinels import SENTINEL

IDENTITY_KEY = [
    'cas_number',
    'measurement',
    'endpoint',
    'latin_name',
    'reference_number'
]

MODES = ('group', 'exact')

#region: sort_by_priority
def sort_by_priority(
        data,
        key_cols=None,
        duration_col='obs_duration_mean',
        conc_col='conc1_mean'
        ):
    '''
    Sort the records so that the preferred record of each group comes first.

    Sort order is the key columns ascending, then duration descending, then
    concentration ascending. The sort is stable. Sentinel and missing values
    of duration and concentration sort last within a group.

    Parameters
    ----------
    data : pandas.DataFrame
    key_cols : list of str, optional
        Default is `IDENTITY_KEY`.
    duration_col : str, optional
    conc_col : str, optional

    Returns
    -------
    pandas.DataFrame
        The sorted records, with the original index labels.
    '''
    if key_cols is None:
        key_cols = IDENTITY_KEY

    sort_frame = data[key_cols].reset_index(drop=True)
    sort_frame['_duration'] = _sentinel_as_missing(data[duration_col])
    sort_frame['_conc'] = _sentinel_as_missing(data[conc_col])

    positions = sort_frame.sort_values(
        by=key_cols + ['_duration', '_conc'],
        ascending=[True]*len(key_cols) + [False, True],
        kind='mergesort',
        na_position='last'
    ).index

    return data.iloc[positions]
#endregion

#region: remove_duplicates
def remove_duplicates(
        data,
        key_cols=None,
        duration_col='obs_duration_mean',
        conc_col='conc1_mean',
        mode='group'
        ):
    '''
    Sort the records by priority and remove duplicates.

    Parameters
    ----------
    data : pandas.DataFrame
    key_cols : list of str, optional
        Default is `IDENTITY_KEY`.
    duration_col : str, optional
    conc_col : str, optional
    mode : {'group', 'exact'}, optional
        'group' keeps the first record of each identity group. 'exact' keeps
        the first of each set of fully identical records, as the legacy
        database did. Default is 'group'.

    Returns
    -------
    deduplicated : pandas.DataFrame
    report : dict
        'mode' and 'n_duplicates_removed'.

    Raises
    ------
    ValueError
        If the mode is not recognized.
    '''
    if mode not in MODES:
        raise ValueError(
            f'Deduplication mode must be one of {MODES}, got "{mode}"'
            )
    if key_cols is None:
        key_cols = IDENTITY_KEY

    sorted_data = sort_by_priority(data, key_cols, duration_col, conc_col)

    if mode == 'group':
        deduplicated = sorted_data.drop_duplicates(
            subset=key_cols,
            keep='first'
            )
    else:
        deduplicated = sorted_data.drop_duplicates(keep='first')

    report = {
        'mode': mode,
        'n_duplicates_removed': len(data) - len(deduplicated)
    }

    return deduplicated, report
#endregion

#region: _sentinel_as_missing
def _sentinel_as_missing(values):
    '''Return numeric values as a plain array, with sentinels as NaN.'''
    values = pd.to_numeric(values, errors='coerce')
    return values.where(values != SENTINEL).to_numpy()
#endregion
