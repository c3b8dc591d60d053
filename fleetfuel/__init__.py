"""Fuel-request approval service for vehicle fleets."""
