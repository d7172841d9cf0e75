'''
This module builds the ECOTOX pharmaceutical database from the raw export
and prepares the flat table for write-out.
'''

import os
import pandas as pd

from .ecotox_cleaning import EcotoxCleaner
from .sentinels import SENTINEL, MISSING_TEXT

#region: database_from_raw
def database_from_raw(data_settings, path_settings, write_dir=None):
    '''
    Load, clean, and export the ECOTOX records.

    Parameters
    ----------
    data_settings : dict
        ECOTOX data settings, including an 'export' section.
    path_settings : dict
    write_dir : str, optional
        If specified, the database is written to this directory as
        tab-delimited text, together with the diagnostics as JSON.

    Returns
    -------
    database : pandas.DataFrame
    diagnostics : dict
    '''
    export_settings = data_settings['export']

    log_file = None
    if write_dir is not None:
        log_file = os.path.join(write_dir, export_settings['diagnostics_file'])

    data_cleaner = EcotoxCleaner(data_settings, path_settings)
    ecotox_data, diagnostics = data_cleaner.prepare_clean_ecotox_data(
        log_file=log_file
        )
    database = prepare_export_table(ecotox_data, export_settings)
    print(f'Prepared {len(database)} records for export.')

    if write_dir is not None:
        database_file = os.path.join(
            write_dir,
            export_settings['database_file']
            )
        database.to_csv(
            database_file,
            sep=export_settings['field_separator'],
            index=False
            )

    return database, diagnostics
#endregion

#region: prepare_export_table
def prepare_export_table(ecotox_data, export_settings):
    '''
    Prepare the cleaned ECOTOX records for write-out as a flat table.

    Parameters
    ----------
    ecotox_data : pandas.DataFrame
        Output of the cleaning steps.
    export_settings : dict
        Columns and fill rules of the exported table.

    Returns
    -------
    pandas.DataFrame

    Notes
    -----
    Missing values are written as explicit tokens: the sentinel for numeric
    columns and MISSING_TEXT for text columns. A missing reliability flag
    is set to False. The field and line separators of the written file are
    replaced in every text column, and the legacy comma separator in the
    free-text columns.
    '''
    ecotox_data = ecotox_data.copy()

    cas_col = export_settings['cas_col']
    ecotox_data[export_settings['cas_alt_col']] = (
        ecotox_data[cas_col].str.replace('-', '', regex=False)
    )
    ecotox_data = ecotox_data.rename(columns=export_settings['rename_columns'])

    # Unconvertible concentrations are treated as missing from here on
    converted_col = export_settings['converted_conc_col']
    ecotox_data[converted_col] = ecotox_data[converted_col].mask(
        ecotox_data[converted_col] == SENTINEL
        )

    ecotox_data = ecotox_data.reindex(columns=export_settings['columns'])

    ecotox_data = _remove_nonpositive_originals(
        ecotox_data,
        export_settings['positive_original_col'],
        export_settings['original_strip_tokens']
        )

    ecotox_data = _replace_separators(
        ecotox_data,
        export_settings['free_text_columns'],
        [export_settings['free_text_separator']],
        export_settings['separator_replacement']
        )

    # No text field may contain the separators used for write-out
    text_columns = [
        col for col in ecotox_data
        if not pd.api.types.is_numeric_dtype(ecotox_data[col])
    ]
    ecotox_data = _replace_separators(
        ecotox_data,
        text_columns,
        output_separators(export_settings),
        export_settings['separator_replacement']
        )

    ecotox_data = _fill_missing_values(ecotox_data, export_settings)

    habitat_col = export_settings['habitat_col']
    rows_to_keep = ecotox_data[habitat_col].isin(
        export_settings['habitats_to_keep']
        )

    return ecotox_data.loc[rows_to_keep].reset_index(drop=True)
#endregion

#region: _remove_nonpositive_originals
def _remove_nonpositive_originals(ecotox_data, original_conc_col, strip_tokens):
    '''
    Remove records whose original concentration is not a positive number.

    The original concentration is parsed after removing the thousands
    separators and qualifier tokens.
    '''
    original_conc = ecotox_data[original_conc_col].astype(str)
    for token in strip_tokens:
        original_conc = original_conc.str.replace(token, '', regex=False)
    original_conc = pd.to_numeric(original_conc.str.strip(), errors='coerce')

    ecotox_data[original_conc_col] = original_conc
    rows_to_exclude = ~(original_conc > 0)
    return ecotox_data.loc[~rows_to_exclude]
#endregion

#region: output_separators
def output_separators(export_settings):
    '''
    Return the field and line separators of the written database.
    '''
    return (
        [export_settings['field_separator']]
        + export_settings.get('line_separators', [])
    )
#endregion

#region: _replace_separators
def _replace_separators(ecotox_data, columns, separators, replacement):
    '''Replace each separator in the string values of the columns.'''
    ecotox_data = ecotox_data.copy()

    def replace(value):
        if not isinstance(value, str):
            return value
        for separator in separators:
            value = value.replace(separator, replacement)
        return value

    for col in columns:
        ecotox_data[col] = ecotox_data[col].map(replace)
    return ecotox_data
#endregion

#region: _fill_missing_values
def _fill_missing_values(ecotox_data, export_settings):
    '''
    Replace missing values with the sentinel or the missing-text token.
    '''
    ecotox_data = ecotox_data.copy()

    numeric_cols = export_settings['numeric_columns']
    reliable_col = export_settings['reliable_col']
    comment_col = export_settings['comment_col']

    for col in ecotox_data:
        if col in numeric_cols:
            ecotox_data[col] = (
                pd.to_numeric(ecotox_data[col], errors='coerce')
                .fillna(SENTINEL)
            )
        elif col == reliable_col:
            ecotox_data[col] = ecotox_data[col].eq(True)
        elif col == comment_col:
            comments = ecotox_data[col].astype(object)
            where_empty = comments.isna() | (comments == '')
            ecotox_data[col] = comments.mask(where_empty, MISSING_TEXT)
        else:
            values = ecotox_data[col].astype(object)
            ecotox_data[col] = values.mask(values.isna(), MISSING_TEXT)

    return ecotox_data
#endregion
