"""
formconv: xlsform to ajf form converter.

Reads xlsform spreadsheets (survey, choices and settings sheets) and
produces the JSON form definition used by the ajf form-rendering engine,
with every xlsform formula compiled to JavaScript.
"""

__version__ = "0.1.0"
