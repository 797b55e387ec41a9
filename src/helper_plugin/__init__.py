"""
Content manager helper package.
Contains the schema-driven content redactor, edit-view form state,
and the admin permission-check client.
"""

__version__ = "0.1.0"
