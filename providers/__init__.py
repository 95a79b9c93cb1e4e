# providers/__init__.py
# External APIs. dira_api.py talks to the Dira BeHanacha Invoker endpoint.
