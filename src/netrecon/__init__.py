"""netrecon - Network reconnaissance toolkit.

Drives external port scanners and folds their output into one result model.
"""

__version__ = "0.4.0"
