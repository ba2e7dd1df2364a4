"""Library catalog management: bulk spreadsheet import, inventory and catalog cards."""

__version__ = "0.1.0"
