"""Command-line flag parsing against a command's option schema.

Each ``CommandSpec`` is turned into a ``click.Command`` whose parameters
mirror the command's options; click does the tokenizing and the usage
errors it raises are reported as ``InvalidOptionError`` naming the flag.
"""

import re
from typing import Any, Dict, List, Mapping, Sequence, Tuple

import click
from click.core import ParameterSource
from loguru import logger

from deployctl.commands.schema import CommandSpec, OptionSpec
from deployctl.errors import InvalidOptionError

EXTRA_ARGUMENTS = "extra_arguments"

# -r=value
SHORT_ASSIGNMENT = re.compile(r"^-([A-Za-z0-9])=(.*)$", re.DOTALL)


def build_click_option(param_name: str, name: str, option: OptionSpec) -> click.Option:
    """Click parameter for one option.

    Booleans become ``--name/--no-name`` flags. Every other option collects
    all occurrences so a repeated single-value option can be reported.
    """
    decls = [param_name]
    if option.is_boolean:
        decls.append(f"--{name}/--no-{name}")
    else:
        decls.append(f"--{name}")
    if option.shortcut:
        decls.append(f"-{option.shortcut}")

    if option.is_boolean:
        return click.Option(decls, default=False, help=option.usage)
    return click.Option(decls, multiple=True, required=option.required, help=option.usage)


def build_click_command(spec: CommandSpec) -> Tuple[click.Command, Dict[str, str]]:
    """Build the click command for ``spec``.

    Returns:
        The command and a map of click parameter name to option name
    """
    names: Dict[str, str] = {}
    params: List[click.Parameter] = []
    for index, (name, option) in enumerate(spec.options.items()):
        param_name = f"option_{index}"
        names[param_name] = name
        params.append(build_click_option(param_name, name, option))
    params.append(click.Argument([EXTRA_ARGUMENTS], nargs=-1))
    command = click.Command(spec.name, params=params, add_help_option=False, help=spec.usage)
    return command, names


def _option_for_flag(spec: CommandSpec, flag: str) -> str:
    """Option name behind a flag as written: ``--stage``, ``-s`` or ``--no-force``."""
    if flag.startswith("--"):
        name = flag[2:]
        if name not in spec.options and name.startswith("no-") and name[3:] in spec.options:
            return name[3:]
        return name
    return spec.shortcuts().get(flag[1:], flag[1:])


def _normalize(argv: Sequence[str]) -> List[str]:
    """Split ``-r=value`` into ``-r value``."""
    args: List[str] = []
    for token in argv:
        match = SHORT_ASSIGNMENT.match(token)
        if match:
            args.extend([f"-{match.group(1)}", match.group(2)])
        else:
            args.append(token)
    return args


def _invalid_value(spec: CommandSpec, name: str, error: click.ClickException) -> InvalidOptionError:
    option = spec.options.get(name)
    if option is not None and option.is_boolean:
        expected = f"no value, use --{name} or --no-{name}"
    else:
        expected = "a value"
    failure = InvalidOptionError.invalid_value(name, None, expected, spec.name)
    failure.context.add_technical_detail("reason", error.format_message())
    return failure


def parse_options(argv: Sequence[str], spec: CommandSpec) -> Dict[str, Any]:
    """Parse command-line flags for ``spec``.

    Args:
        argv: Flags following the command words
        spec: Command the flags were passed to

    Returns:
        Long option name to typed value, for the options that were passed

    Raises:
        InvalidOptionError: Unknown flag, missing or unexpected value,
            repeated single-value option, missing required option or a
            stray positional argument
    """
    command, names = build_click_command(spec)
    try:
        ctx = command.make_context(spec.name, _normalize(argv))
    except click.NoSuchOption as e:
        raise InvalidOptionError.unknown(
            _option_for_flag(spec, e.option_name), spec.name, flag=e.option_name
        ) from e
    except click.BadOptionUsage as e:
        raise _invalid_value(spec, _option_for_flag(spec, e.option_name), e) from e
    except click.MissingParameter as e:
        name = names.get(e.param.name, e.param.name) if e.param else "?"
        raise InvalidOptionError.missing_required(name, spec.name) from e
    except click.BadParameter as e:
        name = names.get(e.param.name, e.param.name) if e.param else "?"
        raise _invalid_value(spec, name, e) from e
    except click.UsageError as e:
        raise InvalidOptionError(
            e.format_message(), command=spec.name, error_code="OPTION_USAGE", cause=e
        ) from e

    extra = ctx.params.pop(EXTRA_ARGUMENTS, ())
    if extra:
        raise InvalidOptionError.unexpected_argument(extra[0], spec.name)

    options: Dict[str, Any] = {}
    for param_name, value in ctx.params.items():
        if ctx.get_parameter_source(param_name) is ParameterSource.DEFAULT:
            continue
        name = names[param_name]
        option = spec.options[name]
        if option.is_boolean:
            options[name] = bool(value)
        elif option.is_multiple:
            options[name] = list(value)
        elif len(value) > 1:
            raise InvalidOptionError.repeated(name, spec.name)
        else:
            options[name] = value[0]

    for name, option in spec.options.items():
        if option.required and name not in options:
            raise InvalidOptionError.missing_required(name, spec.name)

    logger.debug(f"Options for '{spec.name}': {options}")
    return options


def validate_options(raw_flags: Mapping[str, Any], spec: CommandSpec) -> Dict[str, Any]:
    """Validate already-collected flags for ``spec``.

    ``raw_flags`` maps a long option name to a value or a list of values;
    ``True`` and ``False`` stand for ``--name`` and ``--no-name``. The flags
    go through the same parser as the command line.
    """
    argv: List[str] = []
    for name, values in raw_flags.items():
        for value in values if isinstance(values, (list, tuple)) else [values]:
            if value is True:
                argv.append(f"--{name}")
            elif value is False:
                argv.append(f"--no-{name}")
            else:
                argv.append(f"--{name}={value}")
    return parse_options(argv, spec)
