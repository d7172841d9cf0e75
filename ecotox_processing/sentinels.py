'''
Reserved literals used throughout the ECOTOX processing.

A sentinel marks a value that was attempted but could not be converted (or is
known to be missing), so that it stays distinguishable from a true zero or an
empty string once the data are written to disk.
'''

# Numeric fields, e.g., unconvertible concentrations or durations
SENTINEL = -7777

# Text fields in the exported table
MISSING_TEXT = 'missing'
