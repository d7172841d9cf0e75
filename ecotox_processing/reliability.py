'''
This module flags ECOTOX records whose descriptive fields carry marker
characters, e.g., an endpoint 'NOEC/LOEC' (ambiguous, combined value) or a
duration '>96' (censored value).

Flagged records are not removed. They are marked as potentially unreliable,
the marker is stripped from the field, and a note is appended to the
record's comment log.
'''

import pandas as pd

# Default flag rules for the ECOTOX export
DEFAULT_FLAG_RULES = [
    {'field': 'media_type', 'comment_field': 'media_type_comments',
     'markers': ['/']},
    {'field': 'effect', 'comment_field': 'effect_comments',
     'markers': ['/']},
    {'field': 'endpoint', 'comment_field': 'endpoint_comments',
     'markers': ['/', '*']},
    {'field': 'measurement', 'comment_field': 'measurement_comments',
     'markers': ['/']},
    {'field': 'obs_duration_mean', 'comment_field': 'obs_duration_comments',
     'markers': ['/', '<', '>', '=']},
]

NOTE_SEPARATOR = '; '

#region: annotate_reliability
def annotate_reliability(
        data,
        flag_rules=None,
        reliable_col='reliable',
        comment_col='comment'
        ):
    '''
    Flag records with marker characters and annotate the comment log.

    Parameters
    ----------
    data : pandas.DataFrame
    flag_rules : list of dict, optional
        Each rule has keys 'field', 'markers', and optionally
        'comment_field', which names the column of raw commentary for that
        field. Default is `DEFAULT_FLAG_RULES`.
    reliable_col : str, optional
        Reliability flag column. Initialized to True if absent.
    comment_col : str, optional
        Comment log column. Initialized to '' if absent.

    Returns
    -------
    annotated : pandas.DataFrame
    report : dict
        Number of flagged records per field.

    Notes
    -----
    Each fired marker appends a note "<field>: <marker> <commentary>". The
    comment log is cumulative across fields and markers. Rules whose field
    is absent from the data are skipped.
    '''
    if flag_rules is None:
        flag_rules = DEFAULT_FLAG_RULES

    data = data.copy()
    if reliable_col not in data:
        data[reliable_col] = True
    if comment_col not in data:
        data[comment_col] = ''
    data[comment_col] = data[comment_col].fillna('').astype(str)

    report = {}  # initialize
    for rule in flag_rules:
        field = rule['field']
        if field not in data:
            continue

        values = _as_text(data[field])
        commentary = _commentary(data, rule.get('comment_field'))
        where_field_flagged = pd.Series(False, index=data.index)

        for marker in rule['markers']:
            where_flagged = values.str.contains(marker, regex=False, na=False)
            if not where_flagged.any():
                continue

            notes = f'{field}: {marker}' + commentary.loc[where_flagged]
            data.loc[where_flagged, comment_col] = _append_notes(
                data.loc[where_flagged, comment_col],
                notes
                )
            data.loc[where_flagged, reliable_col] = False

            values = values.str.replace(marker, '', regex=False)
            where_field_flagged = where_field_flagged | where_flagged

        # Only overwrite the stored value where a marker was stripped
        data.loc[where_field_flagged, field] = values.loc[where_field_flagged]
        report[field] = int(where_field_flagged.sum())

    return data, report
#endregion

#region: _as_text
def _as_text(series):
    '''Represent the values as strings, keeping missing values missing.'''
    return (
        series.map(lambda x: x if pd.isna(x) else str(x))
        .astype('object')
    )
#endregion

#region: _commentary
def _commentary(data, comment_field):
    '''
    Return the commentary suffix for each record, e.g., ' see text'.

    The suffix is empty where the commentary is missing or blank.
    '''
    if comment_field is None or comment_field not in data:
        return pd.Series('', index=data.index)
    text = data[comment_field].fillna('').astype(str).str.strip()
    return text.where(text == '', ' ' + text)
#endregion

#region: _append_notes
def _append_notes(comments, notes):
    '''Append notes to the existing comments, separated where non-empty.'''
    where_empty = comments == ''
    return comments.where(where_empty, comments + NOTE_SEPARATOR) + notes
#endregion
