import shlex
import sys
import textwrap

import pytest

from grabber_validation.tools import ListingsTools

GRABBER_SCRIPT = textwrap.dedent(
    '''
    import os, signal, sys, time
    BEHAVIOUR = {behaviour!r}
    KNOWN = {{"--version", "--description", "--capabilities", "--configure",
             "--config-file", "--offset", "--days", "--quiet", "--output",
             "--cache", "--share"}}
    args = sys.argv[1:]

    def opt(name, default=None):
        if name in args:
            return args[args.index(name) + 1]
        return default

    if BEHAVIOUR.get("argv_log"):
        with open(BEHAVIOUR["argv_log"], "a") as f:
            f.write(" ".join(args) + "\\n")

    if not BEHAVIOUR.get("accept_anything"):
        for a in args:
            if a.startswith("--") and a not in KNOWN:
                sys.stderr.write("Unknown option " + a + "\\n")
                sys.exit(2)

    if "--version" in args:
        if BEHAVIOUR.get("killed_on_version"):
            os.killpg(os.getpgrp(), signal.SIGTERM)
        print("tv_grab_fake 1.0")
        sys.exit(0)
    if "--description" in args:
        print("Fake listings for tests")
        sys.exit(0)
    if "--capabilities" in args:
        if BEHAVIOUR.get("capabilities") is None:
            sys.exit(1)
        print(BEHAVIOUR["capabilities"])
        sys.exit(0)
    if "--configure" in args:
        with open(opt("--config-file"), "w") as f:
            f.write("channel 1\\n")
        sys.exit(0)

    offset = int(opt("--offset", "0"))
    days = int(opt("--days", "1"))
    quiet = "--quiet" in args
    if days == BEHAVIOUR.get("fail_days"):
        sys.stderr.write("Fetch failed\\n")
        sys.exit(1)
    if days == BEHAVIOUR.get("hang_days"):
        time.sleep(120)
    if BEHAVIOUR.get("noisy") or not quiet:
        sys.stderr.write("Fetching %d days\\n" % days)

    lines = []
    for day in range(offset, offset + days):
        for slot in range(3):
            lines.append('<programme day="%d" slot="%d"/>' % (day, slot))
    if days == 2 and BEHAVIOUR.get("duplicate_on_two_days"):
        lines.append(lines[0])
    if quiet and BEHAVIOUR.get("quiet_changes_output"):
        lines.append("<!-- quiet -->")
    text = "".join(line + "\\n" for line in lines)

    out = opt("--output")
    if out:
        with open(out, "w") as f:
            f.write(text)
    else:
        sys.stdout.write(text)
    '''
)

CAT_SCRIPT = textwrap.dedent(
    '''
    import sys
    if {fail!r}:
        sys.stderr.write("not well-formed\\n")
        sys.exit(1)
    for path in sys.argv[1:]:
        with open(path) as f:
            sys.stdout.write(f.read())
    '''
)

SORT_SCRIPT = textwrap.dedent(
    '''
    import sys
    args = sys.argv[1:]
    lines = []
    for path in [a for a in args if not a.startswith("--")]:
        with open(path) as f:
            lines.extend(f.read().splitlines())
    if "--duplicate-error" in args:
        seen = set()
        for line in lines:
            if line in seen:
                sys.stderr.write("duplicate programme: %s\\n" % line)
            seen.add(line)
    sys.stdout.write("".join(line + "\\n" for line in sorted(lines)))
    '''
)


def _python_command(path):
    return f"{shlex.quote(sys.executable)} {shlex.quote(str(path))}"


@pytest.fixture
def make_grabber(tmp_path):
    """Factory writing a fake grabber script; returns its command line."""
    counter = {"n": 0}

    def _make(**behaviour):
        behaviour.setdefault("capabilities", "baseline manualconfig")
        counter["n"] += 1
        script = tmp_path / f"tv_grab_fake{counter['n']}.py"
        script.write_text(GRABBER_SCRIPT.format(behaviour=behaviour))
        return _python_command(script)

    return _make


@pytest.fixture
def make_tools(tmp_path):
    """Factory for ListingsTools backed by fake tv_cat/tv_sort scripts."""

    def _make(cat_fails=False):
        cat = tmp_path / ("tv_cat_fail.py" if cat_fails else "tv_cat.py")
        cat.write_text(CAT_SCRIPT.format(fail=cat_fails))
        sort = tmp_path / "tv_sort.py"
        sort.write_text(SORT_SCRIPT)
        return ListingsTools(
            cat_command=_python_command(cat),
            sort_command=_python_command(sort),
            diff_command="diff",
        )

    return _make


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "tv_grab_fake.conf"
    path.write_text("channel 1\n")
    return str(path)


@pytest.fixture
def output_prefix(tmp_path):
    return str(tmp_path / "out" / "fake_")


@pytest.fixture
def accept_all():
    """File validator that finds nothing wrong."""
    return lambda path: []
