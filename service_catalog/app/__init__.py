"""
FluxFlix catalog service application package.
"""
