'''
This module provides functions to persist the ECOTOX pharmaceutical database,
the diagnostics of the build, and config settings as metadata to a
structured results directory.
'''

import os
import json

#region: write_database
def write_database(database, results_dir, config_file, filename, sep='\t'):
    '''
    Save the database as delimited text in a results subdirectory.

    Parameters
    ----------
    database : pandas.DataFrame
        The exported ECOTOX records.
    results_dir : str
        Root directory for all results.
    config_file : str
        Path to the configuration file used to name the subdirectory.
    filename : str
        Name of the file (e.g., 'ecotox_pharma_database.tsv').
    sep : str, optional
        Field separator, the 'field_separator' of the export settings.

    Notes
    -----
    Creates a subdirectory under results_dir named after the config file stem.
    '''
    results_subdir = build_results_subdirectory(results_dir, config_file)
    database_file = os.path.join(results_subdir, filename)
    database.to_csv(database_file, sep=sep, index=False)
#endregion

#region: write_diagnostics
def write_diagnostics(diagnostics, results_dir, config_file, filename):
    '''Write the diagnostics reports of the build to JSON.'''
    results_subdir = build_results_subdirectory(results_dir, config_file)
    diagnostics_file = os.path.join(results_subdir, filename)
    with open(diagnostics_file, 'w') as file:
        json.dump(diagnostics, file, indent=4)
#endregion

#region: write_metadata
def write_metadata(config):
    '''Write the current configuration settings to JSON.'''
    results_subdir = build_results_subdirectory(
        config.path['results_dir'],
        config.file
        )
    metadata_file = os.path.join(results_subdir, 'metadata.json')
    with open(metadata_file, 'w') as file:
        json.dump(config.__dict__, file)
#endregion

#region: build_results_subdirectory
def build_results_subdirectory(results_dir, config_file):
    '''Construct and ensure existence of a results subdirectory.'''
    stem = os.path.basename(os.path.splitext(config_file)[0])
    results_subdir = os.path.join(results_dir, stem)
    _ensure_directory(results_subdir)
    return results_subdir
#endregion

#region: _ensure_directory
def _ensure_directory(path):
    '''
    Ensure that the specified directory exists.

    If the directory does not exist, it is created.
    '''
    if not os.path.exists(path):
        os.makedirs(path)
#endregion
