import re
from itertools import count
from typing import List, Tuple, Union

from nestdb.exception import NestDBError

ParamKey = Union[int, str]

QUOTED = r"'(?:[^'\\]|\\.|'')*'|\"(?:[^\"\\]|\\.|\"\")*\"|`[^`]*`"
COMMENT = r"--[^\n]*|/\*[\s\S]*?\*/"
PLACEHOLDER = re.compile(
    rf"({QUOTED}|{COMMENT})|(\?)|(?<!:):([A-Za-z_][A-Za-z0-9_]*)"
)


def convert_placeholders(
    query: str, positional_sub: str = "?"
) -> Tuple[str, List[ParamKey]]:
    """Rewrite `?` and `:name` placeholders into a single driver style

    Args:
        query (str): SQL using `?` or `:name` placeholders
        positional_sub (str, optional): Marker the driver expects.
            Defaults to `?`.

    Returns:
        Tuple[str, List[ParamKey]]: The rewritten query and the parameter
            keys in the order the driver will consume them. Positional
            keys are 1-based integers.

    Raises:
        NestDBError: If positional and named placeholders are mixed
    """
    order: List[ParamKey] = []
    positions = count(1)
    styles = set()

    def replace(match: re.Match) -> str:
        literal, _, keyword = match.groups()
        if literal is not None:
            return literal
        if keyword is not None:
            styles.add("keyword")
            order.append(keyword)
        else:
            styles.add("positional")
            order.append(next(positions))
        return positional_sub

    converted = PLACEHOLDER.sub(replace, query)
    if len(styles) > 1:
        raise NestDBError(
            "Could not convert SQL params: positional and named "
            "placeholders cannot be mixed"
        )
    return converted, order
