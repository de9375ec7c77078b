"""Classification — project names, "what is running here" labels, port categories.

Descriptions come from ``DESCRIPTION_RULES``, an ordered table of
(matcher, label) rows. Rows are evaluated top to bottom against the
lower-cased process name and command line; the first match wins and no
match yields an empty label.
"""

from __future__ import annotations

import posixpath
from collections.abc import Callable
from dataclasses import dataclass

from portmonitor.models import PortCategory

Matcher = Callable[[str, str], bool]

_SCRIPT_SUFFIXES = (".js", ".ts", ".py", ".rb")


@dataclass(frozen=True)
class DescriptionRule:
    """One row of the description table."""

    matcher: Matcher
    label: str

    def matches(self, name: str, command: str) -> bool:
        return self.matcher(name, command)


def name_is(*names: str) -> Matcher:
    return lambda name, _cmd: name in names


def name_startswith(prefix: str) -> Matcher:
    return lambda name, _cmd: name.startswith(prefix)


def name_contains(*fragments: str) -> Matcher:
    return lambda name, _cmd: any(f in name for f in fragments)


def cmd_contains(*fragments: str) -> Matcher:
    return lambda _name, cmd: any(f in cmd for f in fragments)


def any_of(*matchers: Matcher) -> Matcher:
    return lambda name, cmd: any(m(name, cmd) for m in matchers)


def all_of(*matchers: Matcher) -> Matcher:
    return lambda name, cmd: all(m(name, cmd) for m in matchers)


def _family(
    family: Matcher,
    rows: list[tuple[Matcher, str]],
    fallback: str,
) -> list[DescriptionRule]:
    """Expand a process family into guarded sub-rules plus its fallback row."""
    rules = [DescriptionRule(all_of(family, matcher), label) for matcher, label in rows]
    rules.append(DescriptionRule(family, fallback))
    return rules


_NODE = name_is("node", "bun", "deno")
_PYTHON = name_startswith("python")
_RUBY = name_is("ruby", "puma", "unicorn")
_PHP = name_is("php", "php-fpm")
_JAVA = name_contains("java")

DESCRIPTION_RULES: tuple[DescriptionRule, ...] = (
    # Node.js / JavaScript runtimes
    *_family(
        _NODE,
        [
            (cmd_contains("vite"), "Vite dev server"),
            (cmd_contains("next"), "Next.js"),
            (cmd_contains("nuxt"), "Nuxt.js"),
            (cmd_contains("remix"), "Remix"),
            (cmd_contains("astro"), "Astro"),
            (cmd_contains("svelte", "sveltekit"), "SvelteKit"),
            (cmd_contains("react-scripts"), "Create React App"),
            (cmd_contains("webpack"), "Webpack"),
            (cmd_contains("esbuild"), "esbuild"),
            (cmd_contains("parcel"), "Parcel"),
            (cmd_contains("rollup"), "Rollup"),
            (cmd_contains("express"), "Express.js"),
            (cmd_contains("fastify"), "Fastify"),
            (cmd_contains("koa"), "Koa.js"),
            (cmd_contains("nest"), "NestJS"),
            (cmd_contains("strapi"), "Strapi CMS"),
            (cmd_contains("prisma"), "Prisma Studio"),
            (cmd_contains("storybook"), "Storybook"),
            (cmd_contains("electron"), "Electron app"),
            (cmd_contains("turbo"), "Turborepo"),
            (cmd_contains("angular", "ng serve"), "Angular"),
            (cmd_contains("server", "app.js", "index.js"), "Node.js server"),
        ],
        "Node.js",
    ),
    # Python
    *_family(
        _PYTHON,
        [
            (cmd_contains("django", "manage.py"), "Django"),
            (cmd_contains("flask"), "Flask"),
            (cmd_contains("uvicorn"), "Uvicorn (ASGI)"),
            (cmd_contains("fastapi"), "FastAPI"),
            (cmd_contains("gunicorn"), "Gunicorn"),
            (cmd_contains("streamlit"), "Streamlit"),
            (cmd_contains("jupyter"), "Jupyter"),
            (cmd_contains("celery"), "Celery worker"),
            (cmd_contains("airflow"), "Apache Airflow"),
        ],
        "Python",
    ),
    # Ruby
    *_family(
        _RUBY,
        [
            (cmd_contains("rails"), "Ruby on Rails"),
            (cmd_contains("sinatra"), "Sinatra"),
            (cmd_contains("puma"), "Puma server"),
        ],
        "Ruby",
    ),
    # PHP
    *_family(
        _PHP,
        [
            (cmd_contains("artisan"), "Laravel"),
            (cmd_contains("symfony"), "Symfony"),
        ],
        "PHP",
    ),
    # Go / Rust
    DescriptionRule(any_of(name_is("go"), cmd_contains("/go/")), "Go application"),
    DescriptionRule(any_of(name_is("cargo"), cmd_contains("cargo run")), "Rust application"),
    # Java / JVM
    *_family(
        _JAVA,
        [
            (cmd_contains("spring"), "Spring Boot"),
            (cmd_contains("tomcat"), "Apache Tomcat"),
            (cmd_contains("jetty"), "Jetty"),
            (cmd_contains("gradle"), "Gradle"),
            (cmd_contains("maven"), "Maven"),
        ],
        "Java application",
    ),
    # Databases
    DescriptionRule(name_is("postgres", "postgresql"), "PostgreSQL"),
    DescriptionRule(name_is("mysqld", "mysql"), "MySQL"),
    DescriptionRule(name_is("mongod", "mongodb"), "MongoDB"),
    DescriptionRule(name_is("redis-server", "redis"), "Redis"),
    DescriptionRule(name_is("memcached"), "Memcached"),
    DescriptionRule(name_is("clickhouse"), "ClickHouse"),
    DescriptionRule(name_is("elasticsearch"), "Elasticsearch"),
    # Web servers
    DescriptionRule(name_is("nginx"), "Nginx"),
    DescriptionRule(name_is("httpd", "apache2"), "Apache HTTP"),
    DescriptionRule(name_is("caddy"), "Caddy"),
    DescriptionRule(name_is("traefik"), "Traefik"),
    # Containers & DevOps
    DescriptionRule(name_contains("docker"), "Docker"),
    DescriptionRule(name_is("containerd"), "containerd"),
    DescriptionRule(name_is("kubectl"), "Kubernetes CLI"),
    # macOS services
    DescriptionRule(name_is("identityservicesd", "identitys"), "Apple Identity Services"),
    DescriptionRule(name_is("rapportd"), "AirPlay/Handoff"),
    DescriptionRule(name_is("sharingd"), "Sharing Daemon"),
    DescriptionRule(name_is("controlce", "controlcenter"), "Control Center"),
    DescriptionRule(any_of(name_is("airplayxpcd"), name_contains("airplay")), "AirPlay"),
    DescriptionRule(name_is("screensharingd"), "Screen Sharing"),
    DescriptionRule(name_is("sshd", "ssh"), "SSH Server"),
    DescriptionRule(name_is("remotepairingd"), "Remote Pairing"),
    DescriptionRule(name_is("apsd"), "Apple Push Service"),
    DescriptionRule(name_is("mdnsresponder"), "Bonjour/mDNS"),
    DescriptionRule(name_is("netbiosd"), "NetBIOS"),
    DescriptionRule(name_is("smbd"), "SMB File Sharing"),
    DescriptionRule(name_is("cupsd"), "CUPS Printing"),
    DescriptionRule(name_is("launchd"), "macOS Launcher"),
    # Browsers
    DescriptionRule(name_contains("safari"), "Safari"),
    DescriptionRule(name_contains("chrome", "chromium"), "Chrome"),
    DescriptionRule(name_contains("firefox"), "Firefox"),
    DescriptionRule(name_contains("arc"), "Arc Browser"),
    DescriptionRule(name_contains("edge"), "Microsoft Edge"),
    DescriptionRule(name_contains("brave"), "Brave"),
    DescriptionRule(name_contains("opera"), "Opera"),
    # IDEs & editors
    DescriptionRule(all_of(name_contains("code"), name_contains("helper")), "VS Code"),
    DescriptionRule(name_contains("cursor"), "Cursor IDE"),
    DescriptionRule(name_contains("webstorm"), "WebStorm"),
    DescriptionRule(name_contains("intellij"), "IntelliJ IDEA"),
    DescriptionRule(name_contains("pycharm"), "PyCharm"),
    DescriptionRule(name_contains("sublime"), "Sublime Text"),
    DescriptionRule(name_contains("atom"), "Atom"),
    # Messaging & consumer apps
    DescriptionRule(name_contains("slack"), "Slack"),
    DescriptionRule(name_contains("discord"), "Discord"),
    DescriptionRule(name_contains("telegram"), "Telegram"),
    DescriptionRule(name_contains("zoom"), "Zoom"),
    DescriptionRule(name_contains("teams"), "Microsoft Teams"),
    DescriptionRule(name_contains("spotify"), "Spotify"),
    DescriptionRule(name_contains("dropbox"), "Dropbox"),
    DescriptionRule(name_contains("1password"), "1Password"),
)


def describe(
    process_name: str,
    command: str,
    rules: tuple[DescriptionRule, ...] = DESCRIPTION_RULES,
) -> str:
    """Short label for what a process is, or "" if no rule matches."""
    name = process_name.lower()
    cmd = command.lower()
    for rule in rules:
        if rule.matches(name, cmd):
            return rule.label
    return ""


def categorize(port: int) -> PortCategory:
    return PortCategory.for_port(port)


def project_name(command: str, working_directory: str, process_name: str) -> str:
    """Best human-facing project name for a process.

    Prefers the folder of a script named on the command line, then the
    working directory, then the process name itself.
    """
    script = extract_script_path(command)
    if script is not None:
        path = script.rstrip("/") or script
        parent = posixpath.basename(posixpath.dirname(path))
        if parent and parent != ".":
            return parent
        return posixpath.splitext(posixpath.basename(path))[0]

    if working_directory and working_directory != "/":
        return posixpath.basename(working_directory.rstrip("/"))

    return process_name


def extract_script_path(command: str) -> str | None:
    """First argument that looks like a script or project path."""
    for part in command.split(" ")[1:]:
        if "/" in part or part.endswith(_SCRIPT_SUFFIXES):
            return part
    return None
