"""
Order lifecycle for the Branch Order Portal
Identity, serials, the order ledger and reporting over the spreadsheet store
"""
