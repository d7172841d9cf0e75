'''
Configuration of an ECOTOX database build.

A build is described by one small 'main' JSON file, which names a JSON file
for each settings category:

    {"path": "config/path.json", "ecotox": "config/ecotox.json"}

The 'path' category locates the raw export and the side tables, and the
'ecotox' category holds the cleaning steps, column lists, flag rules, and
export layout. Several main files may share category files, e.g., to build
one database per deduplication mode.

Example
-------
config = UnifiedConfiguration('config.json')
steps = config.ecotox['cleaning_steps']
raw_ecotox_file = config.path['raw_ecotox_file']
'''

import json
import os
import argparse

#region: UnifiedConfiguration
class UnifiedConfiguration:
    '''
    Settings of one database build, with one attribute per category.

    Each attribute holds the parsed JSON of its category file, e.g.,
    `config.path` and `config.ecotox`. The main file is kept as `file`,
    which names the results subdirectory of the build.
    '''
    #region: __init__
    def __init__(self, config_file=None, encoding=None):
        '''
        Read the main file and each category file that it names.

        Parameters
        ----------
        config_file : str, optional
            Main JSON file. Defaults to 'config.json' in the working
            directory. Category files given as relative paths are looked up
            next to this file.
        encoding : str, optional
            Encoding of all JSON files. Defaults to 'utf-8'.
        '''
        self.file = config_file or 'config.json'
        encoding = encoding or 'utf-8'

        with open(self.file, 'r', encoding=encoding) as main_file:
            category_files = json.load(main_file)

        config_dir = os.path.dirname(os.path.abspath(self.file))

        for category, category_file in category_files.items():
            if not os.path.isabs(category_file):
                category_file = os.path.join(config_dir, category_file)
            with open(category_file, 'r', encoding=encoding) as file:
                setattr(self, category, json.load(file))
    #endregion
#endregion

#region: base_cli_parser
def base_cli_parser():
    '''
    Options shared by the command-line tools that read a build configuration.

    Returns
    -------
    argparse.ArgumentParser
        A parent parser without its own help option.
    '''
    parser = argparse.ArgumentParser(add_help=False)
    parser.add_argument(
        '-c',
        '--config_file',
        type=str,
        default=None,
        help="Main JSON file of the build (default: 'config.json')"
    )
    parser.add_argument(
        '-e',
        '--encoding',
        type=str,
        default=None,
        help="Encoding of the JSON files (default: 'utf-8')"
    )
    return parser
#endregion
