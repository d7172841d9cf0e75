'''
Unit tests for the catalog of ECOTOX concentration units.
'''

import pandas as pd
import pytest

from ecotox_processing import unit_catalog
from ecotox_processing.concentration import normalize_concentration
from ecotox_processing.unit_catalog import UNIT_CATALOG, UnknownUnitError

#region: extension_file fixture
@pytest.fixture
def extension_file(tmp_path):
    '''Fixture to write a small catalog extension table.'''
    extension_file = tmp_path / 'unit_extension.csv'
    extension_file.write_text(
        'unit;category;factor;divisor\n'
        'mg/25 mL;volume;40000;1\n'
        'ug/L;mass;2;\n'
    )
    return str(extension_file)
#endregion

#region: test_lookup_known_units
@pytest.mark.parametrize('unit, category, factor, divisor', [
    ('uM', 'molar', 1., 1.),
    ('nmol/L', 'molar', 1E-3, 1.),
    ('mM', 'molar', 1E3, 1.),
    ('pM', 'molar', 1E-6, 1.),
    ('mol/L', 'molar', 1E6, 1.),
    ('g/L', 'mass', 1E6, 1.),
    ('mg/L', 'mass', 1E3, 1.),
    ('ppb', 'mass', 1., 1.),
    ('ng/L', 'mass', 1E-3, 1.),
    ('%', 'percent', 1E7, 1.),
    ('g/3.79 L', 'volume', 1E6, 3.79),
    ('AI g/378 L', 'volume', 1E6, 379.),
    ('g/946 ml', 'volume', 1E6 * 1.057, 1.),
    ('lb/gal', 'volume', 1E6 * 453.6, 3.79),
    ('AI oz/100 gal', 'volume', 1E6 * 28.35, 379.),
])
def test_lookup_known_units(unit, category, factor, divisor):
    rule = unit_catalog.lookup_rule(unit)
    assert rule.category == category
    assert rule.factor == pytest.approx(factor)
    assert rule.divisor == pytest.approx(divisor)
#endregion

# Concentration in umol/L of one unit of each catalogued token, for a
# molar mass of 100 g/mol
MW = 100.
MICROMOLAR_PER_UNIT = {
    # umol/L
    **dict.fromkeys([
        'um', 'uM', 'AI uM', 'ae uM', 'uM/L', 'umol', 'uMol', 'umol/dm3',
        'umol/L', 'umoles/l agar', 'mmol/m3', 'nmol/ml'
        ], 1.),
    **dict.fromkeys(['nM', 'nmol', 'nmol/L', 'nM/L', 'pmol/ml'], 1/1E3),
    **dict.fromkeys([
        'mmol/L', 'mmol/dm3', 'mM', 'AI mM', 'mm', 'AI mmol/L', 'mmol',
        'umol/ml'
        ], 1E3),
    **dict.fromkeys(['pmol', 'pmol/L', 'pM'], 1/1E6),
    **dict.fromkeys(
        ['M', 'ae M', 'AI M', 'M/L', 'mol', 'mol/L', 'Mol/L'], 1E6
        ),
    'mol/ml': 1E6*1000,
    'uM/ml': 1*1000,

    # Mass per volume
    **dict.fromkeys([
        'mg/ml', 'ai mg/ml', 'AI mg/ml', 'ng/nl', 'g/dm3', 'g/L', 'ai g/L',
        'ae g/L', 'g/L H2O', 'g/1000 ml', 'AI ug/ul'
        ], 1E6/MW),
    **dict.fromkeys(
        ['%', '% AE', 'AI %', 'AI % w/v', '%w/v', '% w/v'], 10*1E6/MW
        ),
    **dict.fromkeys([
        'mg/dm3', 'mg/L', 'ae mg/L', 'AI mg/L', 'ug/ml', 'ae ug/ml',
        'AI ug/ml', 'ug/ml H2O', 'ng/ul', 'ppm', 'ae ppm', 'AI ppm', 'ppm/L'
        ], 1E3/MW),
    **dict.fromkeys([
        'ug/L', 'AI ug/L', 'ae ug/L', 'ppb', 'AI ppb', 'ae ppb', 'ppb H2O',
        'ng/ml', 'AI ng/mL', 'ng eq/ml', 'ug/dm3'
        ], 1/MW),
    **dict.fromkeys(['ng/L', 'AI ng/L', 'ppt', 'AI ppt', 'pg/ml'], 1/1E3/MW),

    # Grams per volume
    **dict.fromkeys(['g/3.75 L', 'g/3.78 L', 'g/3.79 L'], 1E6/MW/3.79),
    **dict.fromkeys(
        ['AI g/378 L', 'AI g/378.5 L', 'AI g/379 L'], 1E6/MW/379
        ),
    **dict.fromkeys(
        ['g/dl', 'AI g/100 ml', 'g/100 ml', 'kg/hL'], 1E6/MW*10
        ),
    'g/10 L': 1E6/MW/10,
    'AI g/10 L': 1E6/MW/10,
    'g/10.2 L': 1E6/MW/10.2,
    'g/189.25 L': 1E6/MW/189.25,
    'g/2 L': 1E6/MW/2,
    'g/100 L': 1E6/MW/100,
    'AI g/hl': 1E6/MW/100,
    'AI g/100 L': 1E6/MW/100,
    'g/hL': 1E6/MW/100,
    'g/200 L': 1E6/MW/200,
    'AI g/200 L': 1E6/MW/200,
    'AI g/1000 L': 1E6/MW/1000,
    'g/1000 L': 1E6/MW/1000,
    'AI g/300 L': 1E6/MW/300,
    'g/13.5 L': 1E6/MW/13.5,
    'g/16 L': 1E6/MW/16,
    'g/250 L': 1E6/MW/250,
    'g/379 L': 1E6/MW/379,
    'g/5 L': 1E6/MW/5,
    'AI g/ml': 1E6/MW*1000,
    'g/ml': 1E6/MW*1000,
    'g/200 ml': 1E6/MW*5,
    'g/50 ml': 1E6/MW*20,
    'g/500 ml': 1E6/MW*2,
    'g/800 ml': 1E6/MW*1.25,
    'g/946 ml': 1E6/MW*1.057,
    'g/170 ml': 1E6/MW*5.882,

    # Milligrams per volume
    'mg/10 L': 1E3/MW/10,
    'mg/100 ml': 1E3/MW*10,
    'mg/200 ml': 1E3/MW*5,
    'mg/25 ml': 1E3/MW*40,
    'mg/150 ml': 1E3/MW*6.667,
    'mg/100 ul': 1E3/MW*10000,
    'AI mg/50 ml H2O': 1E3/MW*20,
    'mg/60 ml': 1E3/MW*16.666,
    'mg/500 ml': 1E3/MW*2,
    'mg/gal': 1E3/MW/3.79,

    # Micrograms per volume
    'ug/100 ml': 1/MW*10,
    'ug/25 ml': 1/MW*40,
    'ug/50 ml': 1/MW*20,
    'ug/5 ml': 1/MW*200,
    'ug/ul': 1/MW*1E6,
    'ug/3.5 L': 1/MW/3.5,
    'ug/10 L': 1/MW/10,

    # Nanograms and picograms per volume
    'ng/0.5 ml': 1/1E3/MW*2000,
    'ng/25 mL': 1/1E3/MW*40,
    'pg/L': 1/1E6/MW,
    'pg/ul': 1/1E6/MW*1E6,

    # Kilograms per volume
    'kg/2000 L': 1E6/MW/(2000/1000),
    'AI kg/93.5 L': 1E6/MW/(93.5/1000),
    'ai kg/379 l': 1E6/MW/(379/1000),
    'AI kg/378.5 L': 1E6/MW/(378.5/1000),
    'AI kg/378 L': 1E6/MW/(378/1000),
    'AI kg/3.78 L': 1E6/MW/(3.78/1000),
    'kg/L': 1E6/MW/0.001,

    # Imperial units
    'lb/100 gal': 1E6/MW*453.6/379,
    'ae lb/100 gal': 1E6/MW*453.6/379,
    'AI lb/100 gal': 1E6/MW*453.6/379,
    'lb/gal': 1E6/MW*453.6/3.79,
    'ae lb/gal': 1E6/MW*453.6/3.79,
    'AI lb/ga': 1E6/MW*453.6/3.79,
    'lb/40 gal': 1E6/MW*453.6/(3.79*40),
    'AI lb/10 gal': 1E6/MW*453.6/(3.79*10),
    'AI oz/100 gal': 1E6/MW*28.35/379,
    'AI oz/gal': 1E6/MW*28.35/3.79,
    'oz/gal': 1E6/MW*28.35/3.79,
    'oz/2.5 gal': 1E6/MW*28.35/(3.79*2.5),
    'oz/3 gal': 1E6/MW*28.35/(3.79*3),
    'AI g/100 gal': 1E6/MW/379,
}

#region: test_catalog_tokens
def test_catalog_tokens():
    '''Every catalogued token has a reference conversion, and vice versa.'''
    assert set(UNIT_CATALOG) == set(MICROMOLAR_PER_UNIT)
#endregion

#region: test_conversion_of_each_token
@pytest.mark.parametrize('unit', sorted(MICROMOLAR_PER_UNIT))
def test_conversion_of_each_token(unit):
    converted = normalize_concentration(1., unit, MW)
    assert converted == pytest.approx(MICROMOLAR_PER_UNIT[unit], rel=1E-9)
#endregion

#region: test_molar_mass_requirement
def test_molar_mass_requirement():
    '''Only molar units convert without a molar mass.'''
    for unit, rule in UNIT_CATALOG.items():
        assert rule.requires_molar_mass == (rule.category != 'molar'), unit
#endregion

#region: test_lookup_is_exact
@pytest.mark.parametrize('unit', ['MG/L', 'mg/L ', 'mg / L', 'furlongs'])
def test_lookup_is_exact(unit):
    with pytest.raises(UnknownUnitError):
        unit_catalog.lookup_rule(unit)
#endregion

#region: test_unknown_unit_error_is_key_error
def test_unknown_unit_error_is_key_error():
    with pytest.raises(KeyError):
        unit_catalog.lookup_rule('ae g/200 L')
#endregion

#region: test_provenance_prefix
def test_provenance_prefix():
    assert unit_catalog.provenance_prefix('AI ug/L') == 'AI'
    assert unit_catalog.provenance_prefix('ae mg/L') == 'ae'
    assert unit_catalog.provenance_prefix('ai mg/ml') == 'ai'
    assert unit_catalog.provenance_prefix('ug/L') is None
    # Prefix must be followed by a space
    assert unit_catalog.provenance_prefix('AIug/L') is None

    assert unit_catalog.strip_provenance_prefix('AI ug/L') == 'ug/L'
    assert unit_catalog.strip_provenance_prefix('ug/L') == 'ug/L'

    assert UNIT_CATALOG['AI ug/L'].prefix == 'AI'
    assert UNIT_CATALOG['ug/L'].prefix is None
#endregion

#region: test_catalog_is_read_only
def test_catalog_is_read_only():
    with pytest.raises(TypeError):
        UNIT_CATALOG['new unit'] = UNIT_CATALOG['ug/L']
#endregion

#region: test_prefix_consistency
def test_prefix_consistency():
    consistency = unit_catalog.check_prefix_consistency()

    assert len(consistency) > 0
    assert consistency['is_consistent'].all()
    row = consistency.set_index('unit').loc['AI ug/L']
    assert row['base_unit'] == 'ug/L'
#endregion

#region: test_prefix_inconsistency_is_detected
def test_prefix_inconsistency_is_detected():
    catalog = unit_catalog.build_catalog([
        (('mass', 1., 1.), ['ug/L']),
        (('mass', 1E3, 1.), ['AI ug/L']),
    ])
    consistency = unit_catalog.check_prefix_consistency(catalog)

    assert consistency['is_consistent'].tolist() == [False]
#endregion

#region: test_build_catalog_rejects_category
def test_build_catalog_rejects_category():
    with pytest.raises(ValueError):
        unit_catalog.build_catalog([(('weight', 1., 1.), ['ug/L'])])
#endregion

#region: test_unknown_units_report
def test_unknown_units_report():
    units = pd.Series(['mg/L', 'furlongs', 'cubits', 'furlongs', 'uM'])

    report = unit_catalog.unknown_units_report(units)

    assert report == {'n_unknown': 3, 'unknown_units': ['cubits', 'furlongs']}
#endregion

#region: test_catalog_as_frame
def test_catalog_as_frame():
    frame = unit_catalog.catalog_as_frame()

    assert frame.index.name == 'unit'
    assert len(frame) == len(UNIT_CATALOG)
    assert frame.loc['mg/L', 'factor'] == 1E3
    assert not frame.loc['uM', 'requires_molar_mass']
#endregion

#region: test_units_in_category
def test_units_in_category():
    percent_units = unit_catalog.units_in_category('percent')
    assert '%' in percent_units
    assert 'mg/L' not in percent_units
#endregion

#region: test_load_catalog_extension
def test_load_catalog_extension(extension_file):
    catalog = unit_catalog.load_catalog_extension(extension_file)

    assert catalog['mg/25 mL'].factor == 40000.
    assert catalog['mg/25 mL'].requires_molar_mass
    # Extension takes precedence, default divisor applies
    assert catalog['ug/L'].factor == 2.
    assert catalog['ug/L'].divisor == 1.
    # The built-in catalog is unchanged
    assert 'mg/25 mL' not in UNIT_CATALOG
    assert UNIT_CATALOG['ug/L'].factor == 1.
#endregion
