import sys

from colorama import Fore, Style, init

from aleolib import config

init(autoreset=True)


def _quiet() -> bool:
    return config.get_flag("ALEOLIB_QUIET")


def _verbose() -> bool:
    return config.get_flag("ALEOLIB_VERBOSE") and not _quiet()


def safe_print(*args, **kwargs):
    try:
        print(*args, **kwargs)
    except UnicodeEncodeError:
        encoding = getattr(sys.stdout, "encoding", None) or "utf-8"
        print(*(str(a).encode(encoding, errors="replace").decode(encoding) for a in args), **kwargs)


def print_info(msg):
    if not _quiet():
        safe_print(Fore.CYAN + str(msg) + Style.RESET_ALL)


def print_warn(msg):
    if not _quiet():
        safe_print(Fore.YELLOW + str(msg) + Style.RESET_ALL, file=sys.stderr)


def print_error(msg):
    safe_print(Fore.RED + str(msg) + Style.RESET_ALL, file=sys.stderr)


def print_success(msg):
    if not _quiet():
        safe_print(Fore.GREEN + str(msg) + Style.RESET_ALL)


def print_debug(msg):
    if _verbose():
        safe_print(Fore.MAGENTA + str(msg) + Style.RESET_ALL, file=sys.stderr)
