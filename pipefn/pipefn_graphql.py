from graphql import GraphQLError, build_schema as _build_schema, print_schema

from pipefn.pipefn_datatypes import Pipeable, read_text


async def build_schema(value: Pipeable) -> str:
    """Validate SDL text and return it in normalized form; invalid SDL raises GraphQLError."""
    sdl = await read_text(value)
    try:
        schema = _build_schema(sdl)
    except TypeError as e:
        # graphql-core reports SDL validation failures as TypeError
        raise GraphQLError(str(e)) from e
    return print_schema(schema)
