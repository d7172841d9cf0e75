'''
This module applies manual corrections to the processed ECOTOX records.

Some conflicts cannot be resolved by a general rule, e.g., a species whose
taxonomic class or species group is inconsistent across records. These are
corrected from a versioned override table, which lists one correction per
row:

    key_col;key_value;target_col;value
    latin_name;Limulus polyphemus;class;Merostomata
'''

import pandas as pd

OVERRIDE_COLUMNS = ['key_col', 'key_value', 'target_col', 'value']

#region: load_overrides
def load_overrides(overrides_file, encoding='utf-8'):
    '''
    Load the override table from a semicolon-separated file.

    Raises
    ------
    ValueError
        If any of the required columns is missing.
    '''
    overrides = pd.read_csv(
        overrides_file,
        sep=';',
        dtype=str,
        encoding=encoding,
        keep_default_na=False
    )
    overrides.columns = overrides.columns.str.strip()

    missing_columns = [c for c in OVERRIDE_COLUMNS if c not in overrides]
    if missing_columns:
        raise ValueError(
            f'Override table "{overrides_file}" is missing columns: '
            f'{missing_columns}'
            )

    return overrides[OVERRIDE_COLUMNS]
#endregion

#region: apply_overrides
def apply_overrides(data, overrides):
    '''
    Apply each override row to the matching records.

    Parameters
    ----------
    data : pandas.DataFrame
    overrides : pandas.DataFrame
        Table with columns `OVERRIDE_COLUMNS`, applied in row order.

    Returns
    -------
    data : pandas.DataFrame
    report : dict
        Number of cells changed per override, keyed by
        "<key_col>=<key_value> -> <target_col>".

    Raises
    ------
    ValueError
        If a key column does not exist in the data.
    '''
    data = data.copy()

    report = {}  # initialize
    for key_col, key_value, target_col, value in (
            overrides[OVERRIDE_COLUMNS].itertuples(index=False)):

        if key_col not in data:
            raise ValueError(
                f'Override key column "{key_col}" not found in the data'
                )
        if target_col not in data:
            data[target_col] = None

        where_key = data[key_col] == key_value
        where_changed = where_key & (data[target_col] != value)
        data.loc[where_key, target_col] = value

        label = f'{key_col}={key_value} -> {target_col}'
        report[label] = report.get(label, 0) + int(where_changed.sum())

    return data, report
#endregion
