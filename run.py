'''
Main entry point for building the ECOTOX pharmaceutical database.

Loads the raw ECOTOX export, runs the configured cleaning steps, and writes
the exported database, the diagnostics of the build, and the config settings
as metadata to a results subdirectory named after the config file.

The user may specify either a path to a single 'main' config file
(--config_file), or a path to a directory of multiple 'main' config files
(--config_dir), e.g., to compare deduplication modes. By default, the
'config.json' in the working directory is used.

Parameters
-----------
-c, --config_file : str, optional
    Path to a single config file.
-d, --config_dir : str, optional
    Path to a directory of config files.
-e, --encoding : str, optional
    Encoding for the configuration files (default: 'utf-8').
--check_units : flag
    Only cross-check the prefixed unit strings of the catalog against their
    un-prefixed counterparts and print the inconsistent pairs. The catalog
    includes the 'catalog_extension_file' of the path settings, if set.

Examples
--------
# 1. Build the database with the default configuration:
$ python run.py

# 2. Build several variants:
$ python run.py -d config_main
'''

import argparse
import os

from config_management import base_cli_parser, UnifiedConfiguration
from ecotox_processing import ecotox_processing
from ecotox_processing import unit_catalog
import results_management

#region: parse_cli_args
def parse_cli_args():
    '''
    Parse command-line arguments for configuring and building the database.

    Returns
    -------
    argparse.Namespace
        Parsed arguments.
    '''
    parent = base_cli_parser()
    parser = argparse.ArgumentParser(
        parents=[parent],
        description='Build the ECOTOX pharmaceutical database.'
    )
    parser.add_argument(
        '-d',
        '--config_dir',
        type=str,
        help='Path to a directory of multiple main configuration files'
    )
    parser.add_argument(
        '--check_units',
        action='store_true',
        help='Cross-check prefixed unit strings of the catalog and exit'
    )
    return parser.parse_args()
#endregion

#region: build_database
def build_database(config):
    '''
    Build the database for one configuration and persist the results.
    '''
    export_settings = config.ecotox['export']

    database, diagnostics = ecotox_processing.database_from_raw(
        config.ecotox,
        config.path
        )

    results_dir = config.path['results_dir']
    results_management.write_database(
        database,
        results_dir,
        config.file,
        export_settings['database_file'],
        sep=export_settings['field_separator']
        )
    results_management.write_diagnostics(
        diagnostics,
        results_dir,
        config.file,
        export_settings['diagnostics_file']
        )
    results_management.write_metadata(config)

    return database, diagnostics
#endregion

#region: check_units
def check_units(config):
    '''
    Cross-check the prefixed unit strings of the catalog in use.

    The catalog includes the extension table of the configuration, if any.

    Returns
    -------
    pandas.DataFrame
        Output of `unit_catalog.check_prefix_consistency`.
    '''
    catalog = unit_catalog.UNIT_CATALOG
    extension_file = config.path.get('catalog_extension_file')
    if extension_file:
        catalog = unit_catalog.load_catalog_extension(extension_file)

    consistency = unit_catalog.check_prefix_consistency(catalog)
    inconsistent = consistency.loc[~consistency['is_consistent']]
    print(f'{len(consistency)} prefixed unit pairs checked, '
          f'{len(inconsistent)} inconsistent.')
    if len(inconsistent):
        print(inconsistent.to_string(index=False))

    return consistency
#endregion

if __name__ == '__main__':

    args = parse_cli_args()

    if args.check_units:
        check_units(
            UnifiedConfiguration(
                config_file=args.config_file,
                encoding=args.encoding
                )
            )

    else:
        if args.config_dir:
            config_files = [
                os.path.join(args.config_dir, f)
                for f in os.listdir(args.config_dir)
                if f.endswith('.json')
            ]
        else:
            config_files = [args.config_file]

        for config_file in config_files:

            config = UnifiedConfiguration(
                config_file=config_file,
                encoding=args.encoding
                )

            build_database(config)
