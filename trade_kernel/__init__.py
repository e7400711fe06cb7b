"""
Trade kernel: logging, typed exceptions, database plumbing and pure domain
value objects shared by every trade module.
"""
