'''
This module defines the catalog of concentration units found in the ECOTOX
database and the rule for converting each of them to micromoles per liter
(umol/L).

### Context and Purpose

The ECOTOX export contains dozens of free-text unit strings for the same
physical quantity, e.g., "ug/L", "AI ug/L", "ae ug/L", "ppb", "ppb H2O". The
catalog below enumerates every unit string that the curated database is known
to convert, exactly as it appears in the source data. Matching is case- and
whitespace-sensitive, because regulatory source data are inconsistent and a
normalization rule could silently merge units that are not equivalent.

### Conversion Rules

Every unit maps to a `UnitRule`. A concentration is converted as

    magnitude * factor / divisor                    (molar units)
    magnitude * factor / molar_mass / divisor       (all other units)

For mass-based units, `factor` expresses the mass unit in micrograms so that
dividing by the molar mass (g/mol) yields micromoles. Non-standard volume
denominators (e.g., "g/3.79 L") are captured as a literal `divisor` in liters.
Where the curated tables used a rounded multiplier for millilitre
denominators (e.g., x1.057 for "g/946 ml"), that multiplier is kept verbatim
in `factor` to reproduce previously published values.

Imperial to metric conversion constants:
    1 gallon = 3.79 L, 1 ounce = 28.35 g, 1 hectoliter = 100 L,
    1 pound = 453.6 g.
'''

from collections import namedtuple
from types import MappingProxyType
import math
import pandas as pd

MOLAR = 'molar'
MASS = 'mass'
PERCENT = 'percent'
VOLUME = 'volume'
CATEGORIES = (MOLAR, MASS, PERCENT, VOLUME)

# Provenance markers: active ingredient / acid equivalent
PROVENANCE_PREFIXES = ('AI', 'ai', 'ae')

LITERS_PER_GALLON = 3.79
LITERS_PER_100_GALLONS = 379.
GRAMS_PER_OUNCE = 28.35
GRAMS_PER_POUND = 453.6
LITERS_PER_HECTOLITER = 100.

# Percent by mass, assuming an aqueous solution (1% = 10 g/L)
GRAMS_PER_LITER_PER_PERCENT = 10.

# Mass units expressed in micrograms
KG = 1E9
G = 1E6
MG = 1E3
UG = 1.
NG = 1E-3
PG = 1E-6

#region: UnitRule
UnitRule = namedtuple(
    'UnitRule',
    ['category', 'factor', 'divisor', 'requires_molar_mass', 'prefix']
    )
UnitRule.__doc__ = '''
Immutable conversion rule for a single unit string.

Fields
------
category : str
    One of 'molar', 'mass', 'percent', 'volume'.
factor : float
    Multiplier applied to the magnitude.
divisor : float
    Literal volume denominator in liters (1.0 for standard units).
requires_molar_mass : bool
    Whether the conversion divides by the molar mass.
prefix : str or None
    Provenance marker ('AI', 'ai', 'ae') carried as metadata only.
'''
#endregion

#region: UnknownUnitError
class UnknownUnitError(KeyError):
    '''Raised when a unit string is not in the catalog.'''
#endregion

# Each entry is ((category, factor, divisor), units). Entries are applied in
# order, so a unit listed twice takes the last rule.
_CATALOG_GROUPS = [
    # umol/L
    ((MOLAR, 1., 1.), [
        'um', 'uM', 'AI uM', 'ae uM', 'uM/L', 'umol', 'uMol', 'umol/dm3',
        'umol/L', 'umoles/l agar', 'mmol/m3', 'nmol/ml'
        ]),
    # nmol/L
    ((MOLAR, 1E-3, 1.), [
        'nM', 'nmol', 'nmol/L', 'nM/L', 'pmol/ml'
        ]),
    # mmol/L
    ((MOLAR, 1E3, 1.), [
        'mmol/L', 'mmol/dm3', 'mM', 'AI mM', 'mm', 'AI mmol/L', 'mmol',
        'umol/ml', 'uM/ml'
        ]),
    # pmol/L
    ((MOLAR, 1E-6, 1.), [
        'pmol', 'pmol/L', 'pM'
        ]),
    # mol/L
    ((MOLAR, 1E6, 1.), [
        'M', 'ae M', 'AI M', 'M/L', 'mol', 'mol/L', 'Mol/L'
        ]),
    ((MOLAR, 1E6 * 1000, 1.), ['mol/ml']),
    # g/L
    ((MASS, G, 1.), [
        'mg/ml', 'ai mg/ml', 'AI mg/ml', 'ng/nl', 'g/dm3', 'g/L', 'ai g/L',
        'ae g/L', 'g/L H2O', 'g/1000 ml', 'AI ug/ul'
        ]),
    # %
    ((PERCENT, GRAMS_PER_LITER_PER_PERCENT * G, 1.), [
        '%', '% AE', 'AI %', 'AI % w/v', '%w/v', '% w/v'
        ]),
    # mg/L
    ((MASS, MG, 1.), [
        'mg/dm3', 'mg/L', 'ae mg/L', 'AI mg/L', 'ug/ml', 'ae ug/ml',
        'AI ug/ml', 'ug/ml H2O', 'ng/ul', 'ppm', 'ae ppm', 'AI ppm', 'ppm/L'
        ]),
    # ug/L
    ((MASS, UG, 1.), [
        'ug/L', 'AI ug/L', 'ae ug/L', 'ppb', 'AI ppb', 'ae ppb', 'ppb H2O',
        'ng/ml', 'AI ng/mL', 'ng eq/ml', 'ug/dm3'
        ]),
    # ng/L
    ((MASS, NG, 1.), [
        'ng/L', 'AI ng/L', 'ppt', 'AI ppt', 'pg/ml'
        ]),
    # g per gallon
    ((VOLUME, G, LITERS_PER_GALLON), ['g/3.75 L', 'g/3.78 L', 'g/3.79 L']),
    # g per 100 gallons
    ((VOLUME, G, LITERS_PER_100_GALLONS), [
        'AI g/378 L', 'AI g/378.5 L', 'AI g/379 L'
        ]),
    # g per 100 ml
    ((VOLUME, G * 10, 1.), ['g/dl', 'AI g/100 ml', 'g/100 ml', 'kg/hL']),

    # Grams per non-standard volume
    ((VOLUME, G, 10.), ['g/10 L', 'AI g/10 L']),
    ((VOLUME, G, 10.2), ['g/10.2 L']),
    ((VOLUME, G, 189.25), ['g/189.25 L']),
    ((VOLUME, G, 2.), ['g/2 L']),
    ((VOLUME, G, LITERS_PER_HECTOLITER), [
        'g/100 L', 'AI g/hl', 'AI g/100 L', 'g/hL'
        ]),
    ((VOLUME, G, 200.), ['g/200 L', 'AI g/200 L']),
    ((VOLUME, G, 1000.), ['AI g/1000 L', 'g/1000 L']),
    ((VOLUME, G, 300.), ['AI g/300 L']),
    ((VOLUME, G, 13.5), ['g/13.5 L']),
    ((VOLUME, G, 16.), ['g/16 L']),
    ((VOLUME, G, 250.), ['g/250 L']),
    ((VOLUME, G, 379.), ['g/379 L']),
    ((VOLUME, G, 5.), ['g/5 L']),
    ((VOLUME, G * 1000, 1.), ['AI g/ml', 'g/ml']),
    ((VOLUME, G * 5, 1.), ['g/200 ml']),
    ((VOLUME, G * 20, 1.), ['g/50 ml']),
    ((VOLUME, G * 2, 1.), ['g/500 ml']),
    ((VOLUME, G * 1.25, 1.), ['g/800 ml']),
    ((VOLUME, G * 1.057, 1.), ['g/946 ml']),
    ((VOLUME, G * 5.882, 1.), ['g/170 ml']),

    # Milligrams per non-standard volume
    ((VOLUME, MG, 10.), ['mg/10 L']),
    ((VOLUME, MG * 10, 1.), ['mg/100 ml']),
    ((VOLUME, MG * 5, 1.), ['mg/200 ml']),
    ((VOLUME, MG * 40, 1.), ['mg/25 ml']),
    ((VOLUME, MG * 6.667, 1.), ['mg/150 ml']),
    ((VOLUME, MG * 10000, 1.), ['mg/100 ul']),
    ((VOLUME, MG * 20, 1.), ['AI mg/50 ml H2O']),
    ((VOLUME, MG * 16.666, 1.), ['mg/60 ml']),
    ((VOLUME, MG * 2, 1.), ['mg/500 ml']),
    ((VOLUME, MG, LITERS_PER_GALLON), ['mg/gal']),

    # Micrograms per non-standard volume
    ((VOLUME, UG * 10, 1.), ['ug/100 ml']),
    ((VOLUME, UG * 40, 1.), ['ug/25 ml']),
    ((VOLUME, UG * 20, 1.), ['ug/50 ml']),
    ((VOLUME, UG * 200, 1.), ['ug/5 ml']),
    ((VOLUME, UG * 1E6, 1.), ['ug/ul']),
    ((VOLUME, UG, 3.5), ['ug/3.5 L']),
    ((VOLUME, UG, 10.), ['ug/10 L']),

    # Nanograms and picograms per non-standard volume
    ((VOLUME, NG * 2000, 1.), ['ng/0.5 ml']),
    ((VOLUME, NG * 40, 1.), ['ng/25 mL']),
    ((VOLUME, PG, 1.), ['pg/L']),
    ((VOLUME, PG * 1E6, 1.), ['pg/ul']),

    # Kilograms per non-standard volume (divisor in cubic meters)
    ((VOLUME, G, 2000 / 1000), ['kg/2000 L']),
    ((VOLUME, G, 93.5 / 1000), ['AI kg/93.5 L']),
    ((VOLUME, G, 379 / 1000), ['ai kg/379 l']),
    ((VOLUME, G, 378.5 / 1000), ['AI kg/378.5 L']),
    ((VOLUME, G, 378 / 1000), ['AI kg/378 L']),
    ((VOLUME, G, 3.78 / 1000), ['AI kg/3.78 L']),
    ((VOLUME, G, 0.001), ['kg/L']),

    # Imperial units
    ((VOLUME, G * GRAMS_PER_POUND, LITERS_PER_100_GALLONS), [
        'lb/100 gal', 'ae lb/100 gal', 'AI lb/100 gal'
        ]),
    ((VOLUME, G * GRAMS_PER_POUND, LITERS_PER_GALLON), [
        'lb/gal', 'ae lb/gal', 'AI lb/ga'
        ]),
    ((VOLUME, G * GRAMS_PER_POUND, LITERS_PER_GALLON * 40), ['lb/40 gal']),
    ((VOLUME, G * GRAMS_PER_POUND, LITERS_PER_GALLON * 10), ['AI lb/10 gal']),
    ((VOLUME, G * GRAMS_PER_OUNCE, LITERS_PER_100_GALLONS), ['AI oz/100 gal']),
    ((VOLUME, G * GRAMS_PER_OUNCE, LITERS_PER_GALLON), [
        'AI oz/gal', 'oz/gal'
        ]),
    ((VOLUME, G * GRAMS_PER_OUNCE, LITERS_PER_GALLON * 2.5), ['oz/2.5 gal']),
    ((VOLUME, G * GRAMS_PER_OUNCE, LITERS_PER_GALLON * 3), ['oz/3 gal']),
    ((VOLUME, G, LITERS_PER_100_GALLONS), ['AI g/100 gal']),
]

#region: provenance_prefix
def provenance_prefix(unit):
    '''
    Return the provenance marker at the start of a unit string, if any.

    Examples
    --------
    >>> provenance_prefix('AI ug/L')
    'AI'
    >>> provenance_prefix('ug/L') is None
    True
    '''
    for prefix in PROVENANCE_PREFIXES:
        if unit.startswith(prefix + ' '):
            return prefix
    return None
#endregion

#region: strip_provenance_prefix
def strip_provenance_prefix(unit):
    '''Return the unit string without its provenance marker.'''
    prefix = provenance_prefix(unit)
    if prefix is None:
        return unit
    return unit[len(prefix)+1:]
#endregion

#region: build_catalog
def build_catalog(groups):
    '''
    Build a read-only unit catalog from ((category, factor, divisor), units)
    entries.
    '''
    catalog = {}  # initialize
    for (category, factor, divisor), units in groups:
        if category not in CATEGORIES:
            raise ValueError(f'Not a valid unit category: {category}')
        for unit in units:
            catalog[unit] = UnitRule(
                category=category,
                factor=float(factor),
                divisor=float(divisor),
                requires_molar_mass=category != MOLAR,
                prefix=provenance_prefix(unit)
            )
    return MappingProxyType(catalog)
#endregion

UNIT_CATALOG = build_catalog(_CATALOG_GROUPS)

#region: lookup_rule
def lookup_rule(unit, catalog=None):
    '''
    Return the conversion rule for a unit string.

    Raises
    ------
    UnknownUnitError
        If the unit string is not in the catalog.
    '''
    if catalog is None:
        catalog = UNIT_CATALOG
    try:
        return catalog[unit]
    except KeyError:
        raise UnknownUnitError(unit) from None
#endregion

#region: units_in_category
def units_in_category(category, catalog=None):
    '''Return the list of unit strings belonging to a category.'''
    if catalog is None:
        catalog = UNIT_CATALOG
    return [unit for unit, rule in catalog.items() if rule.category == category]
#endregion

#region: unknown_units_report
def unknown_units_report(units, catalog=None):
    '''
    Summarize the unit strings that are not in the catalog.

    Parameters
    ----------
    units : pandas.Series
        Raw unit strings, one per record.

    Returns
    -------
    dict
        'n_unknown' : number of records with an unknown unit.
        'unknown_units' : sorted list of the distinct unknown unit strings.
    '''
    if catalog is None:
        catalog = UNIT_CATALOG
    where_unknown = ~units.isin(list(catalog))
    unknown_units = units.loc[where_unknown].dropna().astype(str).unique()
    return {
        'n_unknown': int(where_unknown.sum()),
        'unknown_units': sorted(unknown_units)
    }
#endregion

#region: catalog_as_frame
def catalog_as_frame(catalog=None):
    '''Tabular view of the catalog, indexed by unit string.'''
    if catalog is None:
        catalog = UNIT_CATALOG
    return pd.DataFrame.from_dict(
        {unit: rule._asdict() for unit, rule in catalog.items()},
        orient='index'
        ).rename_axis('unit')
#endregion

#region: check_prefix_consistency
def check_prefix_consistency(catalog=None):
    '''
    Cross-check every prefixed unit (e.g., 'AI ug/L') against its
    un-prefixed counterpart ('ug/L'), where the latter is in the catalog.

    The provenance marker is expected to be semantically inert, so both units
    should convert identically. Pairs are compared on the effective factor
    (factor / divisor) and on whether a molar mass is required.

    Returns
    -------
    pandas.DataFrame
        One row per pair with columns 'unit', 'base_unit', 'factor',
        'base_factor', 'is_consistent'.
    '''
    if catalog is None:
        catalog = UNIT_CATALOG

    records = []  # initialize
    for unit, rule in catalog.items():
        if rule.prefix is None:
            continue
        base_unit = strip_provenance_prefix(unit)
        if base_unit not in catalog:
            continue
        base_rule = catalog[base_unit]
        factor = rule.factor / rule.divisor
        base_factor = base_rule.factor / base_rule.divisor
        records.append({
            'unit': unit,
            'base_unit': base_unit,
            'factor': factor,
            'base_factor': base_factor,
            'is_consistent': (
                math.isclose(factor, base_factor, rel_tol=1E-12)
                and rule.requires_molar_mass == base_rule.requires_molar_mass
            )
        })

    columns = ['unit', 'base_unit', 'factor', 'base_factor', 'is_consistent']
    return pd.DataFrame(records, columns=columns)
#endregion

#region: load_catalog_extension
def load_catalog_extension(extension_file, catalog=None):
    '''
    Extend the catalog with unit strings from a conversion table.

    The table is semicolon-separated with columns 'unit', 'category',
    'factor', and optionally 'divisor' (default 1). A new catalog is returned;
    the input catalog is left unchanged. Units in the table take precedence.
    '''
    if catalog is None:
        catalog = UNIT_CATALOG

    extension = pd.read_csv(extension_file, sep=';', dtype={'unit': 'str'})
    if 'divisor' not in extension:
        extension['divisor'] = 1.
    extension['divisor'] = extension['divisor'].fillna(1.)

    groups = [
        ((rule.category, rule.factor, rule.divisor), [unit])
        for unit, rule in catalog.items()
    ]
    groups += [
        ((row.category, row.factor, row.divisor), [row.unit])
        for row in extension.itertuples(index=False)
    ]
    return build_catalog(groups)
#endregion
