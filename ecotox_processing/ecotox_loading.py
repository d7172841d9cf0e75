'''
This module contains functions for loading the ECOTOX test results and the
side tables used to build the pharmaceutical database: the molecular weight
reference and the chemical allow-list. Logic for cleaning the records can be
found in a separate module.
'''

import os
import chardet
import pandas as pd

from .sentinels import SENTINEL

#region: raw_ecotox_data
def raw_ecotox_data(raw_ecotox_file, encoding=None, delimiter=None):
    '''
    Load the flat ECOTOX export into a DataFrame.

    The export is one row per test result, joined from the ECOTOX ASCII
    tables: results and tests on 'test_id', then references, chemicals,
    species, effect, endpoint and measurement codes, and the time-unit
    lookups. The cleaning steps require these columns:

        cas_number, result_id, test_id, reference_number
        conc1_mean, conc1_unit, endpoint, measurement, latin_name
        obs_duration_mean, obs_duration_unit, duration_unit_description_obs
        species_group, organism_habitat

    and use these when present, e.g., for the exported table:

        chemical_name, common_name, class, media_type, effect
        conc1_mean_op, measurement_description
        author, title, source, publication_year

    'species_group' is the ECOTOX species group (e.g., 'Fish; Standard Test
    Species') and 'duration_unit_description_obs' the description of the
    observation duration code (e.g., 'Hour(s)'). Free-text '*_comments'
    fields are kept when present. Absent optional columns are reported by
    the 'select_columns' step.

    All columns are read as strings. Raw concentration and duration fields
    contain entries like 'NR', '1,200', or '>96', which are handled during
    cleaning.

    Parameters
    ----------
    raw_ecotox_file : str
        Path to the delimited export.
    encoding : str, optional
        Detected from the file content if not specified.
    delimiter : str, optional
        Detected from the header line if not specified.

    Returns
    -------
    pandas.DataFrame
    '''
    if encoding is None:
        encoding = detect_encoding(raw_ecotox_file)
    if delimiter is None:
        delimiter = determine_delimiter(raw_ecotox_file, encoding)

    print(f'Loading raw ECOTOX data from "{raw_ecotox_file}"...')
    ecotox_data = pd.read_csv(
        raw_ecotox_file,
        encoding=encoding,
        delimiter=delimiter,
        dtype=str,
        low_memory=False
    )
    ecotox_data.columns = ecotox_data.columns.str.strip()

    return ecotox_data
#endregion

#region: load_molecular_weights
def load_molecular_weights(
        mw_file,
        cas_col='cas_number',
        mw_col='mol_wt',
        encoding=None
        ):
    '''
    Load the molecular weight reference, one weight per CAS number.

    Sentinel and non-positive weights are set to missing, because they
    cannot be used for a unit conversion.

    Returns
    -------
    pandas.DataFrame
        Columns `cas_col` and `mw_col`.
    '''
    if encoding is None:
        encoding = detect_encoding(mw_file)
    delimiter = determine_delimiter(mw_file, encoding)

    mw_data = pd.read_csv(
        mw_file,
        encoding=encoding,
        delimiter=delimiter,
        dtype={cas_col: str}
    )
    mw_data.columns = mw_data.columns.str.strip()
    mw_data = mw_data[[cas_col, mw_col]].copy()

    mw_data[cas_col] = mw_data[cas_col].str.strip()
    mol_wt = pd.to_numeric(mw_data[mw_col], errors='coerce')
    where_invalid = (mol_wt == SENTINEL) | (mol_wt <= 0)
    mw_data[mw_col] = mol_wt.mask(where_invalid)

    return (
        mw_data
        .dropna(subset=[cas_col])
        .drop_duplicates(subset=cas_col, keep='first')
        .reset_index(drop=True)
    )
#endregion

#region: load_allow_list
def load_allow_list(allow_list_file, id_col='CAS_number', sheet_name=0):
    '''
    Load the identifiers of the chemicals to keep.

    Spreadsheets are read with `pandas.read_excel`; any other file is
    treated as delimited text.

    Returns
    -------
    list of str
        Distinct identifiers, sorted.
    '''
    extension = os.path.splitext(allow_list_file)[-1].lower()
    if extension in ['.xlsx', '.xls']:
        allow_list = pd.read_excel(
            allow_list_file,
            sheet_name=sheet_name,
            dtype={id_col: str}
            )
    else:
        encoding = detect_encoding(allow_list_file)
        allow_list = pd.read_csv(
            allow_list_file,
            encoding=encoding,
            delimiter=determine_delimiter(allow_list_file, encoding),
            dtype={id_col: str}
            )
    allow_list.columns = allow_list.columns.str.strip()

    identifiers = allow_list[id_col].dropna().str.strip()
    return sorted(identifiers.loc[identifiers != ''].unique())
#endregion

#region: detect_encoding
def detect_encoding(file_path):
    '''
    Determine the encoding of a file from its content.

    Falls back to 'utf-8' if no encoding can be detected, e.g., for an
    empty file.
    '''
    with open(file_path, 'rb') as file:
        raw_data = file.read()
    encoding = chardet.detect(raw_data)['encoding']
    return encoding if encoding is not None else 'utf-8'
#endregion

#region: determine_delimiter
def determine_delimiter(file_path, encoding):
    '''
    Determines the delimiter used in a file.

    Parameters
    ----------
    file_path : str
        The path to the file.
    encoding : str
        The encoding of the file.

    Returns
    -------
    str
        The delimiter used in the file.
    '''
    with open(file_path, 'r', encoding=encoding) as file:
        first_line = file.readline()
    for delimiter in ['\t', '|', ';']:
        if delimiter in first_line:
            return delimiter
    return ','
#endregion
