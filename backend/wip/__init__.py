"""
WIP app - work-in-progress valuation of projects.

WipEngine (wip/engine.py) computes earned value, WIP, aging and risk from
costs and billings, and stores append-only WipSnapshot rows. Read-side
analytics over the snapshots live in wip/aggregations.py.
"""
