"""auth/ -- Authentication and authorization package for siteadmin.

Components, leaves first:
  store.py          PrincipalStore, the credential store (users table)
  tokens.py         password hashing + TokenIssuer (signed bearer tokens)
  authenticator.py  RequestAuthenticator (Authorization header -> PrincipalRef)
  authorizer.py     CapabilityAuthorizer (live role/active re-check)
  dependencies.py   FastAPI Depends() glue around the above

Layer rule: auth/ imports only stdlib + third-party libraries, plus core/.
It does NOT import from api/ or content/.
api/ imports from auth/, not the other way around.
"""
