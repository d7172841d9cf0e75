'''
This module contains the `EcotoxCleaner` class, which turns the raw ECOTOX
test results into normalized records of pharmaceutical ecotoxicity.

The cleaning steps are methods of the class and are run in the order listed
in the data settings ('cleaning_steps'). A step returns either the cleaned
data or a tuple of the cleaned data and a diagnostics report.
'''

import pandas as pd
import json

from . import ecotox_loading
from . import concentration
from . import duration
from . import reliability
from . import deduplication
from . import overrides
from .unit_catalog import UNIT_CATALOG, load_catalog_extension

#region: EcotoxCleaner.__init__
class EcotoxCleaner:
    '''
    A class for cleaning the ECOTOX test results.

    This class defines the cleaning operations for the ECOTOX export and
    provides a framework for running a sequence of cleaning steps
    dynamically.
    '''
    def __init__(self, data_settings, path_settings):
        self.data_settings = data_settings
        self.path_settings = path_settings

        catalog_extension_file = path_settings.get('catalog_extension_file')
        if catalog_extension_file:
            self.catalog = load_catalog_extension(catalog_extension_file)
        else:
            self.catalog = UNIT_CATALOG
#endregion

    #region: prepare_clean_ecotox_data
    def prepare_clean_ecotox_data(self, log_file=None):
        '''
        Provides the main interface.

        Encapsulates raw data loading and cleaning.
        '''
        raw_ecotox_data = self.load_raw_data()

        return self.clean_raw_data(raw_ecotox_data, log_file=log_file)
    #endregion

    #region: load_raw_data
    def load_raw_data(self):
        '''Load the flat ECOTOX export.'''
        return ecotox_loading.raw_ecotox_data(
            self.path_settings['raw_ecotox_file']
            )
    #endregion

    #region: clean_raw_data
    def clean_raw_data(self, raw_ecotox_data, log_file=None):
        '''
        Clean the raw ECOTOX data using a sequence of cleaning steps.

        Parameters
        ----------
        raw_ecotox_data : pandas.DataFrame
        log_file : str, optional
            If specified, the diagnostics are written to this file as JSON.

        Returns
        -------
        ecotox_data : pandas.DataFrame
            The cleaned data.
        diagnostics : dict
            'records_removed' maps each step to the change in the number of
            records. The reports returned by individual steps are keyed by
            step name.
        '''
        ecotox_data = raw_ecotox_data.copy()
        change_log = {}  # initialize
        step_reports = {}

        for step_name in self.data_settings['cleaning_steps']:
            print(f'Running cleaning step "{step_name}"...')
            N_before = len(ecotox_data)
            # Dynamically get the cleaning method from the step name
            result = getattr(self, step_name)(ecotox_data)
            if isinstance(result, tuple):
                ecotox_data, step_reports[step_name] = result
            else:
                ecotox_data = result
            N_after = len(ecotox_data)
            change_log[step_name] =  N_after - N_before

        diagnostics = {'records_removed': change_log, **step_reports}

        if log_file is not None:
            with open(log_file, 'w') as log_file:
                json.dump(diagnostics, log_file, indent=4)

        return ecotox_data, diagnostics
    #endregion

    #region: filter_to_allow_list
    def filter_to_allow_list(self, ecotox_data):
        '''
        Keep only the chemicals on the regulatory allow-list.
        '''
        allowed_identifiers = ecotox_loading.load_allow_list(
            self.path_settings['allow_list_file'],
            id_col=self.data_settings['allow_list_id_col']
            )
        cas_col = self.data_settings['cas_col']
        rows_to_keep = ecotox_data[cas_col].isin(allowed_identifiers)
        return ecotox_data.loc[rows_to_keep]
    #endregion

    #region: select_columns
    def select_columns(self, ecotox_data):
        '''
        Keep the configured columns and all commentary fields.

        Configured columns that are absent from the data are reported.
        '''
        columns_to_keep = self.data_settings['columns_to_keep']
        comment_pattern = self.data_settings['comment_fields_pattern']

        missing_columns = [c for c in columns_to_keep if c not in ecotox_data]
        comment_columns = [
            c for c in ecotox_data
            if comment_pattern in c and c not in columns_to_keep
            ]
        columns = (
            [c for c in columns_to_keep if c in ecotox_data]
            + comment_columns
        )

        report = {'missing_columns': missing_columns}
        return ecotox_data[columns].copy(), report
    #endregion

    #region: copy_original_values
    def copy_original_values(self, ecotox_data):
        '''
        Keep copies of the original values before any conversion.

        Each copy is named with the suffix '_original'.
        '''
        ecotox_data = ecotox_data.copy()
        for col in self.data_settings['original_columns']:
            if col in ecotox_data:
                ecotox_data[f'{col}_original'] = ecotox_data[col]
        return ecotox_data
    #endregion

    #region: remove_unreported_concentrations
    def remove_unreported_concentrations(self, ecotox_data):
        '''
        Remove records with a missing or non-reported test concentration.
        '''
        conc_col = self.data_settings['conc_col']
        unreported_tokens = self.data_settings['unreported_concentrations']

        rows_to_exclude = (
            ecotox_data[conc_col].isna()
            | ecotox_data[conc_col].str.strip().isin(unreported_tokens)
        )
        return ecotox_data.loc[~rows_to_exclude]
    #endregion

    #region: remove_nonpositive_concentrations
    def remove_nonpositive_concentrations(self, ecotox_data):
        '''
        Remove records with a negative or zero test concentration.

        Thousands separators are removed from the concentrations first.
        Entries that are not yet numeric (e.g., 'ca150*') are retained for the
        subsequent cleaning.
        '''
        ecotox_data = ecotox_data.copy()
        conc_col = self.data_settings['conc_col']

        ecotox_data[conc_col] = (
            ecotox_data[conc_col].str.replace(',', '', regex=False)
        )
        numeric_conc = pd.to_numeric(ecotox_data[conc_col], errors='coerce')
        rows_to_exclude = numeric_conc <= 0

        return ecotox_data.loc[~rows_to_exclude]
    #endregion

    #region: remove_unreported_endpoints
    def remove_unreported_endpoints(self, ecotox_data):
        '''
        Remove records whose endpoint contains the non-reported token.
        '''
        endpoint_col = self.data_settings['endpoint_col']
        token = self.data_settings['unreported_endpoint_token']
        rows_to_exclude = ecotox_data[endpoint_col].str.contains(
            token,
            regex=False,
            na=False
            )
        return ecotox_data.loc[~rows_to_exclude]
    #endregion

    #region: remove_missing_cas_numbers
    def remove_missing_cas_numbers(self, ecotox_data):
        '''
        Remove records without a CAS number.
        '''
        cas_col = self.data_settings['cas_col']
        rows_to_exclude = (
            ecotox_data[cas_col].isna()
            | (ecotox_data[cas_col].str.strip() == '')
        )
        return ecotox_data.loc[~rows_to_exclude]
    #endregion

    #region: add_molecular_weights
    def add_molecular_weights(self, ecotox_data):
        '''
        Add the molecular weight of each chemical by CAS number.

        Chemicals without a molecular weight are retained and reported. The
        molecular weight reference should be amended for these.
        '''
        ecotox_data = ecotox_data.copy()
        cas_col = self.data_settings['cas_col']
        mw_col = self.data_settings['mw_col']

        mw_data = ecotox_loading.load_molecular_weights(
            self.path_settings['mw_file'],
            cas_col=cas_col,
            mw_col=mw_col
            )
        mol_wt_for_cas = mw_data.set_index(cas_col)[mw_col]
        ecotox_data[mw_col] = ecotox_data[cas_col].map(mol_wt_for_cas)

        where_missing = ecotox_data[mw_col].isna()
        missing_cas = sorted(ecotox_data.loc[where_missing, cas_col].unique())
        if missing_cas:
            print(
                f'{len(missing_cas)} chemicals are missing molecular weights. '
                f'Amend the file "{self.path_settings["mw_file"]}".'
            )

        report = {
            'n_records_missing_molecular_weight': int(where_missing.sum()),
            'cas_numbers_missing_molecular_weight': missing_cas
        }
        return ecotox_data, report
    #endregion

    #region: clean_concentration_values
    def clean_concentration_values(self, ecotox_data):
        '''
        Parse the test concentrations to numbers.

        Raises
        ------
        ValueError
            If any concentration remains non-numeric after cleaning.
        '''
        ecotox_data = ecotox_data.copy()
        conc_col = self.data_settings['conc_col']
        ecotox_data[conc_col] = concentration.clean_concentration_strings(
            ecotox_data[conc_col],
            strip_tokens=self.data_settings.get('concentration_strip_tokens')
            )
        return ecotox_data
    #endregion

    #region: annotate_reliability
    def annotate_reliability(self, ecotox_data):
        '''
        Flag records with marker characters as potentially unreliable.
        '''
        return reliability.annotate_reliability(
            ecotox_data,
            flag_rules=self.data_settings.get('reliability_flags'),
            reliable_col=self.data_settings['reliable_col'],
            comment_col=self.data_settings['comment_col']
        )
    #endregion

    #region: consolidate_species_groups
    def consolidate_species_groups(self, ecotox_data):
        '''
        Map the species groups onto a small set of canonical names.

        ECOTOX combines groups, e.g., 'Fish; Standard Test Species'. Each
        keyword is matched case-insensitively, in the configured order; a
        later match overwrites an earlier one.
        '''
        ecotox_data = ecotox_data.copy()
        group_col = self.data_settings['species_group_col']
        original_groups = ecotox_data[group_col].copy()

        for keyword, group in self.data_settings['species_group_keywords']:
            where_keyword = ecotox_data[group_col].str.contains(
                keyword,
                case=False,
                regex=False,
                na=False
                )
            ecotox_data.loc[where_keyword, group_col] = group

        where_changed = (
            (ecotox_data[group_col] != original_groups)
            & original_groups.notna()
        )
        report = {
            'n_changed': int(where_changed.sum()),
            'species_groups': sorted(
                ecotox_data[group_col].dropna().astype(str).unique()
                )
        }
        return ecotox_data, report
    #endregion

    #region: convert_durations_to_days
    def convert_durations_to_days(self, ecotox_data):
        '''
        Convert the observation durations to days.

        Durations that cannot be converted are set to the sentinel and
        reported.
        '''
        ecotox_data = ecotox_data.copy()
        duration_col = self.data_settings['duration_col']
        unit_col = self.data_settings['duration_unit_col']
        description_col = self.data_settings['duration_description_col']

        days, report = duration.convert_to_days(
            ecotox_data[duration_col],
            ecotox_data[unit_col],
            ecotox_data[description_col]
        )
        if report['unconverted_descriptions']:
            print(
                'Unconverted duration unit descriptions: '
                f'{report["unconverted_descriptions"]}'
            )

        ecotox_data[duration_col] = days
        ecotox_data[unit_col] = self.data_settings['converted_duration_unit']
        ecotox_data[description_col] = (
            self.data_settings['converted_duration_description']
        )
        return ecotox_data, report
    #endregion

    #region: apply_overrides
    def apply_overrides(self, ecotox_data):
        '''
        Apply the manual corrections from the override table.
        '''
        override_table = overrides.load_overrides(
            self.path_settings['overrides_file']
            )
        return overrides.apply_overrides(ecotox_data, override_table)
    #endregion

    #region: convert_concentrations_to_micromolar
    def convert_concentrations_to_micromolar(self, ecotox_data):
        '''
        Convert the test concentrations to micromoles per liter.

        Concentrations with an unknown unit or a missing molecular weight are
        set to the sentinel and reported.
        '''
        ecotox_data = ecotox_data.copy()
        conc_col = self.data_settings['conc_col']
        unit_col = self.data_settings['conc_unit_col']

        converted, report = concentration.convert_to_micromolar(
            ecotox_data[conc_col],
            ecotox_data[unit_col],
            ecotox_data[self.data_settings['mw_col']],
            catalog=self.catalog
        )
        if report['unknown_units']:
            print(
                f'{report["n_unknown_unit"]} records have unconvertible '
                f'concentration units: {report["unknown_units"]}'
            )

        ecotox_data[conc_col] = converted
        ecotox_data[unit_col] = self.data_settings['converted_conc_unit']
        return ecotox_data, report
    #endregion

    #region: remove_duplicates
    def remove_duplicates(self, ecotox_data):
        '''
        Remove duplicate observations, retaining the longest exposure and then
        the lowest concentration.
        '''
        return deduplication.remove_duplicates(
            ecotox_data,
            key_cols=self.data_settings['identity_key'],
            duration_col=self.data_settings['duration_col'],
            conc_col=self.data_settings['conc_col'],
            mode=self.data_settings.get('deduplication_mode', 'group')
        )
    #endregion
