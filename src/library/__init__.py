"""
Library circulation bounded context: borrow, return, fines, overdue notices.
"""
