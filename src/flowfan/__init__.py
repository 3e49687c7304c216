"""
flowfan: flow-unit processors for fan-out and remote transfer.

Duplicates a unit of work into one copy per element of a delimited-list
attribute, and ships units to remote input ports.
"""

__version__ = "0.1.0"
