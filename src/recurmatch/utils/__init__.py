"""Utility functions for recurmatch."""

from recurmatch.utils.date_parser import parse_date, parse_month
from recurmatch.utils.amount_parser import parse_amount

__all__ = ["parse_date", "parse_month", "parse_amount"]
