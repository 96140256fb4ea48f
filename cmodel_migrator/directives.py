"""Deployment directive codec.

Directives carry "which mechanism becomes which deployment, with which part
renames" from the analysis phase to the generation phase. The text format is
line oriented, one three-line record per mechanism, records separated by a
blank line::

    # comments are ignored
    OLD_BMECH demo:Mech1
    NEW_DEPLOYMENTS changeme:CModel1-SDep1
    NEW_PARTS FULL=FULL THUMB=THUMB

Operators may edit the ``NEW_PARTS`` mappings between the two phases.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field

from .errors import ConfigurationError, DirectiveSyntaxError

OLD_BMECH = "OLD_BMECH"
NEW_DEPLOYMENTS = "NEW_DEPLOYMENTS"
NEW_PARTS = "NEW_PARTS"

# Earlier tool versions wrote this keyword instead of NEW_DEPLOYMENTS.
LEGACY_NEW_BMECH = "NEW_BMECH"

_KEYWORDS = (OLD_BMECH, NEW_DEPLOYMENTS, LEGACY_NEW_BMECH, NEW_PARTS)


@dataclass(frozen=True)
class Directive:
    """Instruction to clone one mechanism into a new service deployment.

    Attributes:
        source_mechanism_id: Pid of the legacy mechanism to copy.
        new_deployment_id: Pid of the deployment to create.
        renamed_parts: Old part name to new part name.
    """

    source_mechanism_id: str
    new_deployment_id: str
    renamed_parts: dict[str, str] = field(default_factory=dict)

    def __hash__(self) -> int:
        return hash(
            (
                self.source_mechanism_id,
                self.new_deployment_id,
                frozenset(self.renamed_parts.items()),
            )
        )


def encode(directive: Directive) -> str:
    """Encode one directive as a three-line record without a trailing newline.

    Raises:
        ConfigurationError: If an id or part name is empty or contains
            whitespace, or a part name being renamed contains ``=``.
    """
    _check_token("mechanism id", directive.source_mechanism_id)
    _check_token("deployment id", directive.new_deployment_id)
    for old, new in directive.renamed_parts.items():
        _check_token("part name", old)
        _check_token("new part name", new)
        if "=" in old:
            raise ConfigurationError(f"Part name cannot contain '=': {old!r}")
    parts = "".join(f" {old}={new}" for old, new in directive.renamed_parts.items())
    return (
        f"{OLD_BMECH} {directive.source_mechanism_id}\n"
        f"{NEW_DEPLOYMENTS} {directive.new_deployment_id}\n"
        f"{NEW_PARTS}{parts}"
    )


def encode_all(directives: Iterable[Directive], header: Iterable[str] = ()) -> str:
    """Encode a directive file.

    Args:
        directives: Directives in the order they should appear.
        header: Comment lines to put first; ``#`` is prepended.

    Returns:
        File content ending with a newline.
    """
    blocks = [encode(directive) for directive in directives]
    head = "".join(f"# {line}\n" if line else "#\n" for line in header)
    return head + "\n\n".join(blocks) + ("\n" if blocks else "")


def decode(stream: str | Iterable[str]) -> list[Directive]:
    """Parse a directive file.

    Blank lines, ``#`` comments and lines starting with any other token are
    skipped. ``NEW_BMECH`` is accepted in place of ``NEW_DEPLOYMENTS``.

    Args:
        stream: The whole text, or an iterable of lines such as an open file.

    Returns:
        Directives in file order.

    Raises:
        DirectiveSyntaxError: On a keyword without its argument, a part
            token without ``=``, a duplicate part, a keyword out of order or
            a record left incomplete.
    """
    lines = stream.splitlines() if isinstance(stream, str) else stream

    directives: list[Directive] = []
    source: str | None = None
    target: str | None = None
    started_at = 0

    for line_number, raw in enumerate(lines, start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        keyword, *args = line.split()
        if keyword not in _KEYWORDS:
            continue

        if keyword == OLD_BMECH:
            if source is not None:
                raise DirectiveSyntaxError(
                    f"{OLD_BMECH} {source} has no {NEW_PARTS} line", started_at
                )
            source = _single_argument(keyword, args, line_number)
            started_at = line_number
        elif keyword in (NEW_DEPLOYMENTS, LEGACY_NEW_BMECH):
            if source is None or target is not None:
                raise DirectiveSyntaxError(
                    f"{keyword} must follow {OLD_BMECH}", line_number
                )
            target = _single_argument(keyword, args, line_number)
        else:
            if source is None or target is None:
                raise DirectiveSyntaxError(
                    f"{NEW_PARTS} must follow {OLD_BMECH} and {NEW_DEPLOYMENTS}",
                    line_number,
                )
            directives.append(
                Directive(source, target, _parse_parts(args, line_number))
            )
            source = target = None

    if source is not None:
        raise DirectiveSyntaxError(f"Incomplete directive for {source}", started_at)
    return directives


def _check_token(what: str, value: str) -> None:
    if not value or any(c.isspace() for c in value):
        raise ConfigurationError(
            f"Directive {what} must be non-empty without whitespace: {value!r}"
        )


def _single_argument(keyword: str, args: list[str], line_number: int) -> str:
    if len(args) != 1:
        raise DirectiveSyntaxError(
            f"{keyword} takes exactly one argument, got {len(args)}", line_number
        )
    return args[0]


def _parse_parts(tokens: list[str], line_number: int) -> dict[str, str]:
    parts: dict[str, str] = {}
    for token in tokens:
        old, sep, new = token.partition("=")
        if not sep or not old or not new:
            raise DirectiveSyntaxError(
                f"Part mapping must look like old=new: {token!r}", line_number
            )
        if old in parts:
            raise DirectiveSyntaxError(f"Part {old} renamed twice", line_number)
        parts[old] = new
    return parts
