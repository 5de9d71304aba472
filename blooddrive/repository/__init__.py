"""
Table access for the hosted backend, one repository per entity.
"""

from __future__ import annotations

from blooddrive.repository.campaigns import CampaignRepo
from blooddrive.repository.locations import LocationRepo
from blooddrive.repository.profiles import ProfileRepo
from blooddrive.repository.registrations import RegistrationRepo

__all__ = ["CampaignRepo", "LocationRepo", "ProfileRepo", "RegistrationRepo"]
