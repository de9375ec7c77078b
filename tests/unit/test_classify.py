"""Tests for the classification rules."""

from __future__ import annotations

import pytest

from portmonitor.classify import (
    DESCRIPTION_RULES,
    DescriptionRule,
    categorize,
    cmd_contains,
    describe,
    extract_script_path,
    name_is,
    project_name,
)
from portmonitor.models import PortCategory


class TestProjectName:
    def test_script_parent_folder(self):
        assert project_name("node /Users/x/myapp/server.js", "", "node") == "myapp"

    def test_script_at_root_uses_file_stem(self):
        assert project_name("node /server.js", "", "node") == "server"

    def test_bare_script_uses_file_stem(self):
        assert project_name("python3 manage.py runserver", "", "Python") == "manage"

    def test_working_directory(self):
        assert project_name("redis-server *:6379", "/Users/x/cache", "redis-server") == "cache"

    def test_root_working_directory_ignored(self):
        assert project_name("launchd", "/", "launchd") == "launchd"

    def test_falls_back_to_process_name(self):
        assert project_name("", "", "rapportd") == "rapportd"

    def test_first_argument_never_considered(self):
        assert extract_script_path("/usr/libexec/rapportd") is None
        assert extract_script_path("/bin/node /a/b.js") == "/a/b.js"


class TestDescribe:
    @pytest.mark.parametrize(
        "name,command,expected",
        [
            ("node", "node node_modules/.bin/vite", "Vite dev server"),
            ("node", "node /app/node_modules/.bin/next dev", "Next.js"),
            ("bun", "bun run astro dev", "Astro"),
            ("node", "node node_modules/.bin/ng serve", "Angular"),
            ("node", "node /Users/x/myapp/server.js", "Node.js server"),
            ("node", "node repl", "Node.js"),
            ("python3", "python3 manage.py runserver", "Django"),
            ("Python", "/usr/bin/python -m flask run", "Flask"),
            ("python3.12", "python3.12 -m uvicorn main:app", "Uvicorn (ASGI)"),
            ("python3", "python3 script.py", "Python"),
            ("ruby", "ruby bin/rails server", "Ruby on Rails"),
            ("puma", "puma 6.4.0 (tcp://0.0.0.0:3000)", "Puma server"),
            ("php", "php artisan serve", "Laravel"),
            ("php-fpm", "php-fpm: master process", "PHP"),
            ("go", "go run .", "Go application"),
            ("myserver", "/Users/x/go/bin/myserver", "Go application"),
            ("cargo", "cargo run", "Rust application"),
            ("java", "java -jar spring-app.jar", "Spring Boot"),
            ("java", "java -jar app.jar", "Java application"),
            ("postgres", "postgres -D /data", "PostgreSQL"),
            ("redis-server", "redis-server *:6379", "Redis"),
            ("nginx", "nginx: master process", "Nginx"),
            ("com.docker.backend", "", "Docker"),
            ("rapportd", "/usr/libexec/rapportd", "AirPlay/Handoff"),
            ("mDNSResponder", "/usr/sbin/mDNSResponder", "Bonjour/mDNS"),
            ("sshd", "sshd: alice", "SSH Server"),
            ("Google Chrome Helper", "", "Chrome"),
            ("Code Helper", "", "VS Code"),
            ("Slack", "", "Slack"),
        ],
    )
    def test_rows(self, name: str, command: str, expected: str):
        assert describe(name, command) == expected

    def test_unmatched_is_empty(self):
        assert describe("mystery-daemon", "/usr/local/bin/mystery-daemon") == ""

    def test_first_match_wins(self):
        # Both vite and next appear; vite is earlier in the table.
        assert describe("node", "node vite next") == "Vite dev server"

    def test_family_fallback_only_after_sub_rules(self):
        labels = [rule.label for rule in DESCRIPTION_RULES]
        assert labels.index("Vite dev server") < labels.index("Node.js")
        assert labels.index("Django") < labels.index("Python")

    def test_command_is_case_insensitive(self):
        assert describe("NODE", "node VITE") == "Vite dev server"

    def test_custom_rule_table(self):
        rules = (
            DescriptionRule(name_is("svc"), "Service"),
            DescriptionRule(cmd_contains("--debug"), "Debugging"),
        )
        assert describe("other", "other --debug", rules) == "Debugging"
        assert describe("svc", "svc --debug", rules) == "Service"


def test_categorize():
    assert categorize(443) == PortCategory.WEB
    assert categorize(5432) == PortCategory.DATABASE
    assert categorize(22) == PortCategory.SSH
    assert categorize(9999) == PortCategory.OTHER
