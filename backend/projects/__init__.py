"""
Projects app - clients, projects and their billable events.

Billing and ProjectCost status changes go through
projects.transitions.StatusTransitionMachine, which posts the matching
journals and records status history.
"""
