"""
API services layer.

Module functions taking the request session and the caller snapshot; they
consult the authorization engine and commit their own unit of work.
"""
