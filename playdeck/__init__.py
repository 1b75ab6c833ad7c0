"""Validate, plan and run ordered Ansible plays."""

__version__ = "0.1.0"
