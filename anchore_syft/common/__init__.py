"""
Common definitions shared across the image backend, scope and catalogers
"""
