"""BloodDrive: blood-donation campaign coordination API."""

__version__ = "1.0.0"
