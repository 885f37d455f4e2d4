"""Framework adapters for request validation.

These are optional thin wrappers.  Import the adapter for your framework::

    from secure_marshal.adapters.fastapi_adapter import marshalled_body
    from secure_marshal.adapters.flask_adapter import validate_json
"""
