"""
Variable Substitution

Expands `${NAME}` placeholders against the store's flat variable mapping so
secrets and environment-specific values stay out of stored definitions.
"""

from typing import Dict

from .models import ApiDefinition, ApiKeyAuth, BasicAuth, BearerAuth

# Bound on recursive expansion; guards against cyclic variable references.
MAX_SUBSTITUTION_DEPTH = 10


def substitute(text: str, variables: Dict[str, str]) -> str:
    """
    Replace every `${NAME}` with `variables[NAME]`.

    Unknown names are left as-is, and an unterminated `${...` at the end
    of the input is emitted verbatim.
    """
    out = []
    pos = 0

    while True:
        start = text.find("${", pos)
        if start == -1:
            out.append(text[pos:])
            break

        end = text.find("}", start + 2)
        if end == -1:
            out.append(text[pos:])
            break

        out.append(text[pos:start])
        name = text[start + 2:end]
        if name in variables:
            out.append(variables[name])
        else:
            out.append(text[start:end + 1])
        pos = end + 1

    return "".join(out)


def substitute_recursive(text: str, variables: Dict[str, str]) -> str:
    """
    Apply `substitute` until the text stops changing.

    Stops after MAX_SUBSTITUTION_DEPTH passes; the result is then best-effort
    and may still hold placeholders.
    """
    current = text
    for _ in range(MAX_SUBSTITUTION_DEPTH):
        expanded = substitute(current, variables)
        if expanded == current:
            break
        current = expanded
    return current


def expand_definition(api: ApiDefinition, variables: Dict[str, str]) -> ApiDefinition:
    """
    Return a copy of `api` with placeholders expanded in its base URL, path,
    default header values and credentials.
    """
    if not variables:
        return api

    def expand(value: str) -> str:
        return substitute_recursive(value, variables)

    auth = api.authentication
    if isinstance(auth, ApiKeyAuth):
        auth = auth.model_copy(update={"header_name": expand(auth.header_name), "api_key": expand(auth.api_key)})
    elif isinstance(auth, BearerAuth):
        auth = auth.model_copy(update={"token": expand(auth.token)})
    elif isinstance(auth, BasicAuth):
        auth = auth.model_copy(update={"username": expand(auth.username), "password": expand(auth.password)})

    return api.model_copy(
        update={
            "base_url": expand(api.base_url),
            "path": expand(api.path),
            "headers": {key: expand(value) for key, value in api.headers.items()},
            "authentication": auth,
        },
        deep=True,
    )
