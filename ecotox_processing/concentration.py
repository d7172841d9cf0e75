'''
This module converts ECOTOX test concentrations to a single canonical unit,
micromoles per liter (umol/L).

Raw concentrations arrive as "dirty" strings (e.g., '1,200', 'ca150*'),
which are first cleaned and parsed to numbers. The numbers are then converted
using the rules of the unit catalog and, for mass-based units, the molar mass
of the chemical.

Concentrations that cannot be converted (unknown unit, missing molar mass) are
set to the sentinel value rather than dropped, so that the records stay in the
dataset and can be reported to the operator.
'''

import numpy as np
import pandas as pd

from .sentinels import SENTINEL
from .unit_catalog import UNIT_CATALOG, UnknownUnitError, lookup_rule
from .unit_catalog import unknown_units_report

# Qualifiers embedded in the numeric string: footnote marker and "circa"
DEFAULT_STRIP_TOKENS = ['*', 'ca']

#region: clean_concentration_strings
def clean_concentration_strings(values, strip_tokens=None):
    '''
    Parse raw concentration strings to floats.

    Thousands separators (',') and the known qualifier tokens are removed
    before parsing. Missing values are left missing.

    Parameters
    ----------
    values : pandas.Series
        Raw concentration strings.
    strip_tokens : list of str, optional
        Substrings to remove prior to parsing. Default is ['*', 'ca'].

    Returns
    -------
    pandas.Series of float

    Raises
    ------
    ValueError
        If any value remains non-numeric after cleaning. This means that the
        cleaning rules are incomplete for the current data and must be
        extended before the unit conversion can be trusted.
    '''
    if strip_tokens is None:
        strip_tokens = DEFAULT_STRIP_TOKENS

    cleaned = (
        values.map(lambda x: x if pd.isna(x) else str(x))
        .astype('object')
    )
    cleaned = cleaned.str.replace(',', '', regex=False)
    for token in strip_tokens:
        cleaned = cleaned.str.replace(token, '', regex=False)
    cleaned = cleaned.str.strip()

    numeric_values = pd.to_numeric(cleaned, errors='coerce')

    where_unconverted = numeric_values.isna() & values.notna()
    if where_unconverted.any():
        unconverted = sorted(values.loc[where_unconverted].astype(str).unique())
        raise ValueError(
            'Unconverted concentration entries remain after cleaning '
            f'({where_unconverted.sum()} records): {unconverted}. '
            'Extend the cleaning rules and re-run.'
            )

    return numeric_values.astype('float64')
#endregion

#region: is_valid_molar_mass
def is_valid_molar_mass(molar_mass):
    '''True if the molar mass is present and strictly positive.'''
    return (
        molar_mass is not None
        and not pd.isna(molar_mass)
        and molar_mass > 0
    )
#endregion

#region: normalize_concentration
def normalize_concentration(magnitude, unit, molar_mass=None, catalog=None):
    '''
    Convert a single concentration to umol/L.

    Parameters
    ----------
    magnitude : float
        Parsed concentration value.
    unit : str
        Raw unit string, matched exactly against the catalog.
    molar_mass : float, optional
        Molar mass [g/mol] of the chemical. Only used for mass-based units.
    catalog : mapping, optional
        Unit catalog. Defaults to `unit_catalog.UNIT_CATALOG`.

    Returns
    -------
    float
        The concentration in umol/L; the sentinel if the unit is unknown or
        a required molar mass is unavailable; NaN if the magnitude is missing.

    Examples
    --------
    >>> normalize_concentration(150., 'mg/L', 300.)
    500.0
    '''
    if pd.isna(magnitude):
        return np.nan

    try:
        rule = lookup_rule(unit, catalog)
    except UnknownUnitError:
        return float(SENTINEL)

    if not rule.requires_molar_mass:
        return magnitude * rule.factor / rule.divisor

    if not is_valid_molar_mass(molar_mass):
        return float(SENTINEL)

    return magnitude * rule.factor / molar_mass / rule.divisor
#endregion

#region: convert_to_micromolar
def convert_to_micromolar(values, units, molar_masses, catalog=None):
    '''
    Convert concentrations to umol/L, vectorized over records.

    Parameters
    ----------
    values : pandas.Series
        Parsed concentration values.
    units : pandas.Series
        Raw unit strings, aligned with `values`.
    molar_masses : pandas.Series
        Molar masses [g/mol], aligned with `values`. Missing or non-positive
        entries are treated as unavailable.
    catalog : mapping, optional
        Unit catalog. Defaults to `unit_catalog.UNIT_CATALOG`.

    Returns
    -------
    converted : pandas.Series
        Concentrations in umol/L, or the sentinel where not convertible.
    report : dict
        'n_unknown_unit', 'unknown_units', and 'n_missing_molar_mass'.
    '''
    if catalog is None:
        catalog = UNIT_CATALOG

    factor = units.map({unit: rule.factor for unit, rule in catalog.items()})
    divisor = units.map({unit: rule.divisor for unit, rule in catalog.items()})
    molar_units = [
        unit for unit, rule in catalog.items() if not rule.requires_molar_mass
        ]

    where_known = units.isin(list(catalog))
    where_molar = units.isin(molar_units)
    where_needs_mw = where_known & ~where_molar
    where_valid_mw = molar_masses.notna() & (molar_masses > 0)

    converted = pd.Series(float(SENTINEL), index=values.index)

    converted.loc[where_molar] = (
        values.loc[where_molar]
        * factor.loc[where_molar]
        / divisor.loc[where_molar]
    )

    # Convert units only where molecular weights are available
    # This avoids propagating NaNs to the converted result
    where_to_convert = where_needs_mw & where_valid_mw
    converted.loc[where_to_convert] = (
        values.loc[where_to_convert]
        * factor.loc[where_to_convert]
        / molar_masses.loc[where_to_convert]
        / divisor.loc[where_to_convert]
    )

    converted.loc[values.isna()] = np.nan

    unknown = unknown_units_report(units, catalog)
    report = {
        'n_unknown_unit': unknown['n_unknown'],
        'unknown_units': unknown['unknown_units'],
        'n_missing_molar_mass': int((where_needs_mw & ~where_valid_mw).sum())
    }

    return converted, report
#endregion
