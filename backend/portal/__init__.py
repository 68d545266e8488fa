"""Athlete Portal: sponsorship, contract, obligation and invoice tracking API."""
