"""
Transaction -> trip reconciliation.

A scheduled job matches pending transactions to the owner's dated trips with
an LLM, and two authenticated endpoints let the owner link or dismiss by hand.
"""
