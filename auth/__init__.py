"""auth/ -- Identity, credential and session package for Ubiquitous.

Layer rule: auth/ imports only stdlib, third-party libraries and core/.
It does NOT import from api/ or projects/.
api/ and projects/ import from auth/, not the other way around.
"""
