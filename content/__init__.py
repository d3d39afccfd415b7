"""content/ -- Site content persistence: products, news, contact messages, site settings.

Layer rule: content/ imports only stdlib + sqlalchemy. It knows nothing about
auth; routes in api/ apply the capability checks before calling in here.
"""
