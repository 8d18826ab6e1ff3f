"""Simulated shell commands.

Nothing here touches the real system: every command renders flavor text
and may ask the caller to set flags or shift the corruption level.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass, field

from .parser import ShellInvocation
from .world import RoomId


@dataclass
class ShellResult:
    output: list[str]
    flags_to_set: dict[str, bool] = field(default_factory=dict)
    corruption_change: int = 0


ENVIRONMENT = {
    "USER": "trapped_user",
    "HOME": "/dev/null",
    "SHELL": "/bin/corrupted",
    "TERM": "paradox",
}

CORRUPTED_FILE = [
    "#!/bin/corrupted",
    "while (trapped) {",
    "  system.decay++;",
    "  memory.leak();",
    "  // TODO: find escape()",
    "}",
    "[CORRUPTED DATA FOLLOWS]",
    "�" * 17,
]


def _has(flags: list[str], *names: str) -> bool:
    return any(name in flags for name in names)


def _ls(inv: ShellInvocation, room: RoomId, puzzle: str | None) -> ShellResult:
    show_hidden = _has(inv.flags, "-a", "--all")
    in_maze = room == RoomId.FILE_MAZE
    output = [""]

    if _has(inv.flags, "-l", "--long"):
        output += [
            "total 42",
            "drwxr-xr-x  2 user user 4096 Jan  1 00:00 .",
            "drwxr-xr-x  5 root root 4096 Jan  1 00:00 ..",
            "-rw-r--r--  1 user user  256 Jan  1 00:00 corrupted.txt",
            "-rwx------  1 root root  512 Jan  1 00:00 escape.sh [locked]",
            "drwxr-xr-x  3 user user 4096 Jan  1 00:00 memories/",
        ]
        if show_hidden:
            output += [
                "-rw-------  1 user user  128 Jan  1 00:00 .secrets",
                "-rw-r--r--  1 user user   64 Jan  1 00:00 .bash_history",
            ]
            if in_maze:
                output.append("drwx------  2 user user 4096 Jan  1 00:00 .hidden_path/")
    else:
        files = ["corrupted.txt", "escape.sh", "memories/"]
        if show_hidden:
            files = [".", ".."] + files + [".secrets", ".bash_history"]
            if in_maze:
                files.append(".hidden_path/")
        for i in range(0, len(files), 3):
            output.append("  ".join(f.ljust(20) for f in files[i:i + 3]).rstrip())

    result = ShellResult(output)
    if show_hidden and in_maze:
        result.flags_to_set["found_hidden"] = True
        output += ["", "[!] Hidden path discovered!"]
    return result


def _grep(inv: ShellInvocation, room: RoomId, puzzle: str | None) -> ShellResult:
    pattern = inv.args[0] if inv.args else "escape"
    output = [f'Searching for pattern: "{pattern}"...']

    if _has(inv.flags, "-r", "--recursive"):
        output += [
            "memories/day1.txt:12: I need to escape this loop",
            "memories/day5.txt:3: The escape key is broken",
            '.secrets:1: escape_sequence="^[[ESC"',
        ]
    elif len(inv.args) > 1:
        output.append(f"{inv.args[1]}:1: Pattern found in corrupted memory")
    else:
        output += ["corrupted.txt:42: escape();", "escape.sh:1: #!/bin/bash"]

    result = ShellResult(output)
    lowered = pattern.lower()
    if "escape" in lowered or "exit" in lowered:
        output += ["", "[!] Found: /dev/escape -> /freedom"]
        result.flags_to_set["found_escape"] = True
    return result


def _cat(inv: ShellInvocation, room: RoomId, puzzle: str | None) -> ShellResult:
    filename = inv.args[0] if inv.args else "corrupted.txt"
    number_lines = _has(inv.flags, "-n", "--number")
    show_ends = _has(inv.flags, "-E", "--show-ends")

    output = [f"Reading {filename}...", ""]
    for i, line in enumerate(CORRUPTED_FILE, start=1):
        if number_lines:
            line = f"     {i:>2}  {line}"
        if show_ends:
            line += "$"
        output.append(line)
    return ShellResult(output)


def _echo(inv: ShellInvocation, room: RoomId, puzzle: str | None) -> ShellResult:
    text = " ".join(inv.args)
    if "-e" in inv.flags:
        text = text.replace("\\n", "\n").replace("\\t", "\t").replace("\\\\", "\\")
    text = re.sub(
        r"\$(\w+)",
        lambda m: ENVIRONMENT.get(m.group(1).upper(), m.group(0)),
        text,
    )
    return ShellResult([text or "Terminal Paradox v0.0.1"])


def _chmod(inv: ShellInvocation, room: RoomId, puzzle: str | None) -> ShellResult:
    mode = inv.args[0] if inv.args else "755"
    target = inv.args[1] if len(inv.args) > 1 else "escape.sh"

    if _has(inv.flags, "-v", "--verbose"):
        output = [f"mode of '{target}' changed from 0644 to 0{mode}"]
    else:
        output = [f"Changing permissions of {target} to {mode}..."]
    if _has(inv.flags, "-R", "--recursive"):
        output.append("Applying recursively to all subdirectories...")
    if target == "escape.sh" and mode in ("777", "755", "+x"):
        output += [
            "[!] escape.sh is now executable!",
            "[!] But it seems to need root privileges...",
        ]
    if puzzle:
        output.append("Permissions modified for puzzle environment.")
    return ShellResult(output)


def _sudo(inv: ShellInvocation, room: RoomId, puzzle: str | None) -> ShellResult:
    if _has(inv.flags, "-l", "--list"):
        return ShellResult([
            "User trapped_user may run the following commands:",
            "    (root) NOPASSWD: /bin/escape.sh",
        ])
    if _has(inv.flags, "-v", "--validate"):
        return ShellResult(["Password: ", "Sorry, try again."])

    if room == RoomId.ROOT_VAULT:
        return ShellResult(
            [
                "[sudo] password for trapped_user: ********",
                "",
                "AUTHENTICATION SUCCESSFUL!",
                "ROOT ACCESS GRANTED!",
                "",
                "Welcome to the root vault.",
                "With great power comes great responsibility.",
            ],
            flags_to_set={"has_root": True},
            corruption_change=-50,
        )
    return ShellResult(
        [
            "[sudo] password for trapped_user: ",
            "trapped_user is not in the sudoers file.",
            "This incident will be reported.",
        ],
        corruption_change=10,
    )


def _kill(inv: ShellInvocation, room: RoomId, puzzle: str | None) -> ShellResult:
    if _has(inv.flags, "-l", "--list"):
        return ShellResult([
            " 1) SIGHUP     2) SIGINT     3) SIGQUIT    9) SIGKILL",
            "15) SIGTERM   18) SIGCONT   19) SIGSTOP   20) SIGTSTP",
        ])

    target = inv.args[0] if inv.args else "zombies"
    if _has(inv.flags, "-9", "--kill"):
        output = [f"Sending SIGKILL to {target}...", "Process terminated forcefully."]
    else:
        output = [f"Sending SIGTERM to {target}...", "Process terminated gracefully."]
    output += ["", "Killing zombie processes...", "[!] Memory freed: 15MB"]
    return ShellResult(output, corruption_change=-15)


def _pipe(inv: ShellInvocation, room: RoomId, puzzle: str | None) -> ShellResult:
    return ShellResult([
        "Pipe operator activated.",
        "Creating data flow between commands...",
        "",
        "Example pipelines:",
        "  ls -la | grep hidden",
        "  cat file | grep pattern",
        "  echo $USER | cat",
        "",
        "[!] Combine pipe with other commands for powerful effects!",
    ])


_COMMANDS: dict[str, Callable[[ShellInvocation, RoomId, str | None], ShellResult]] = {
    "ls": _ls,
    "grep": _grep,
    "cat": _cat,
    "echo": _echo,
    "chmod": _chmod,
    "sudo": _sudo,
    "kill": _kill,
    "pipe": _pipe,
}


def execute(
    invocation: ShellInvocation, room: RoomId, active_puzzle: str | None = None
) -> ShellResult:
    """Run a simulated command and return its output and side effects."""
    handler = _COMMANDS.get(invocation.command)
    if handler is None:
        return ShellResult([f"Executed: {invocation.command}"])
    return handler(invocation, room, active_puzzle)


@dataclass(frozen=True)
class CommandHelp:
    name: str
    summary: str
    usage: str
    examples: tuple[str, ...]
    tips: tuple[str, ...]


COMMAND_HELP: dict[str, CommandHelp] = {
    "ls": CommandHelp(
        "ls (list)",
        "Lists files and directories in the current location",
        "ls [options]",
        ("ls          -> List current directory",
         "ls -a       -> Show hidden files (starting with .)",
         "ls -l       -> Long format with details",
         "ls -la      -> Show all files in long format"),
        ("Hidden files start with a dot (.secrets, .hidden_path)",
         "Finding hidden paths may reveal secrets!"),
    ),
    "grep": CommandHelp(
        "grep (global regular expression print)",
        "Searches for patterns in files or text",
        "grep [options] [pattern] [file]",
        ("grep escape        -> Search for \"escape\" patterns",
         "grep -i ERROR      -> Case-insensitive search",
         "grep -r pattern    -> Search recursively in all files"),
        ("Searching for \"escape\" or \"exit\" might help!",),
    ),
    "chmod": CommandHelp(
        "chmod (change mode)",
        "Changes file permissions (who can read/write/execute)",
        "chmod [options] [mode] [file]",
        ("chmod +x escape.sh  -> Make file executable",
         "chmod 755 file      -> rwx for owner, rx for others",
         "chmod -v 777 file   -> Verbose mode, full permissions"),
        ("Making escape.sh executable is important!",
         "-R applies permissions recursively"),
    ),
    "sudo": CommandHelp(
        "sudo (superuser do)",
        "Runs commands with administrator/root privileges",
        "sudo [options] [command]",
        ("sudo            -> Request root access",
         "sudo -l         -> List allowed commands",
         "sudo -v         -> Validate credentials"),
        ("May only work in specific locations",
         "The root-vault might accept sudo"),
    ),
    "cat": CommandHelp(
        "cat (concatenate)",
        "Displays file contents or combines files",
        "cat [options] [file]",
        ("cat corrupted.txt  -> Display file contents",
         "cat -n file        -> Show with line numbers",
         "cat -E file        -> Show line endings with $"),
        ("Some files might contain clues!",),
    ),
    "echo": CommandHelp(
        "echo",
        "Prints text to the terminal",
        "echo [options] [text]",
        ("echo hello         -> Print text",
         "echo $USER         -> Print environment variable",
         "echo -e a\\nb       -> Enable escape sequences"),
        ("$USER, $HOME, $SHELL show system info",),
    ),
    "pipe": CommandHelp(
        "pipe ( | )",
        "Sends output from one command as input to another",
        "command1 | command2",
        ("ls -la | grep \".txt\"  -> List only .txt files",
         "cat file | wc -l      -> Count lines in file"),
        ("Combines simple tools into powerful workflows",),
    ),
    "kill": CommandHelp(
        "kill",
        "Terminates running processes",
        "kill [options] [target]",
        ("kill zombies    -> Kill zombie processes",
         "kill -9 process -> Force kill (SIGKILL)",
         "kill -l         -> List available signals"),
        ("Killing zombies reduces corruption",),
    ),
}


def command_help(item: str) -> list[str]:
    """Long-form help for one command item."""
    entry = COMMAND_HELP.get(item)
    if entry is None:
        return [f"No help available for '{item}'"]

    rule = "=" * 51
    lines = [rule, entry.name.upper(), rule, "", entry.summary, "", "USAGE:"]
    lines.append(f"  {entry.usage}")
    lines += ["", "EXAMPLES:"] + [f"  {example}" for example in entry.examples]
    lines += ["", "TIPS:"] + [f"  * {tip}" for tip in entry.tips]
    lines += ["", rule]
    return lines


def quick_help(item: str) -> str:
    entry = COMMAND_HELP.get(item)
    return entry.summary if entry else f"Command '{item}'"
