'''
Unit tests for loading the unified configuration.
'''

import json
import pytest

from config_management import UnifiedConfiguration, base_cli_parser

#region: config_dir fixture
@pytest.fixture
def config_dir(tmp_path):
    '''Fixture to write a mapping file and one settings file per category.'''
    settings_dir = tmp_path / 'config'
    settings_dir.mkdir()
    (settings_dir / 'path.json').write_text(
        json.dumps({'results_dir': 'Results'})
        )
    (settings_dir / 'ecotox.json').write_text(
        json.dumps({'conc_col': 'conc1_mean'})
        )
    (tmp_path / 'config.json').write_text(json.dumps({
        'path': 'config/path.json',
        'ecotox': str(settings_dir / 'ecotox.json')
    }))
    return tmp_path
#endregion

#region: test_categories_become_attributes
def test_categories_become_attributes(config_dir):
    config = UnifiedConfiguration(str(config_dir / 'config.json'))

    assert config.path == {'results_dir': 'Results'}
    assert config.ecotox == {'conc_col': 'conc1_mean'}
    assert config.file == str(config_dir / 'config.json')
#endregion

#region: test_default_config_file
def test_default_config_file(config_dir, monkeypatch):
    monkeypatch.chdir(config_dir)

    config = UnifiedConfiguration()

    assert config.file == 'config.json'
    assert config.ecotox['conc_col'] == 'conc1_mean'
#endregion

#region: test_repository_configuration
def test_repository_configuration():
    config = UnifiedConfiguration('config.json')

    steps = config.ecotox['cleaning_steps']
    assert steps[0] == 'filter_to_allow_list'
    assert steps[-1] == 'remove_duplicates'
    assert steps.index('convert_durations_to_days') < (
        steps.index('convert_concentrations_to_micromolar')
        )
    assert config.ecotox['identity_key'] == [
        'cas_number',
        'measurement',
        'endpoint',
        'latin_name',
        'reference_number'
    ]
    assert 'results_dir' in config.path
#endregion

#region: test_base_cli_parser
def test_base_cli_parser():
    parser = base_cli_parser()

    args = parser.parse_args(['-c', 'config.json', '-e', 'latin-1'])
    assert args.config_file == 'config.json'
    assert args.encoding == 'latin-1'

    args = parser.parse_args([])
    assert args.config_file is None
    assert args.encoding is None
#endregion
