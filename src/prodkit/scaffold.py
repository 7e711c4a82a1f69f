"""scaffold: create project skeletons from built-in or custom templates.

config.json:
    {"custom_templates": ["my-template"],
     "variables": {"author": "", "email": "", "github_username": ""}}

Custom templates live in templates/<name>.json with the same shape as the
built-ins in scaffold_templates: description, files, directories, post_create.
A custom template shadows a built-in of the same name.
"""

from __future__ import annotations

import json
import logging
import re
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import click

from prodkit import dates
from prodkit.config import load_config
from prodkit.groups import tool_group
from prodkit.output import header, open_editor, setup_logging
from prodkit.scaffold_templates import BUILTIN_TEMPLATES, CUSTOM_SKELETON, NEXT_STEPS
from prodkit.store import JsonStore, write_json, write_text

logger = logging.getLogger("prodkit.scaffold")

NAME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9_-]*$")
DEFAULT_CONFIG: dict[str, Any] = {
    "custom_templates": [],
    "variables": {"author": "", "email": "", "github_username": ""},
}


@dataclass
class Template:
    name: str
    description: str = ""
    files: dict[str, str] = field(default_factory=dict)
    directories: list[str] = field(default_factory=list)
    post_create: list[str] = field(default_factory=list)
    custom: bool = False

    @classmethod
    def from_dict(cls, name: str, d: dict[str, Any], custom: bool = False) -> Template:
        if not isinstance(d, dict) or not isinstance(d.get("files", {}), dict):
            msg = f"template '{name}' must be a JSON object with a 'files' object"
            raise ValueError(msg)
        return cls(
            name=name,
            description=d.get("description") or ("Custom template" if custom else ""),
            files={str(k): str(v) for k, v in d.get("files", {}).items()},
            directories=[str(x) for x in d.get("directories", [])],
            post_create=[str(x) for x in d.get("post_create", [])],
            custom=custom,
        )


@dataclass
class CreatedProject:
    path: Path
    directories: list[str]
    files: list[str]
    commands: list[tuple[str, int]]


def validate_name(name: str, what: str = "project") -> str:
    if not NAME_RE.match(name):
        msg = (
            f"invalid {what} name '{name}': must start with a letter and contain only "
            "letters, numbers, hyphens and underscores"
        )
        raise ValueError(msg)
    return name


def substitute(text: str, values: dict[str, str]) -> str:
    for key, value in values.items():
        text = text.replace("{{" + key + "}}", value)
    return text


def _inside(root: Path, relative: str) -> Path:
    target = (root / relative).resolve()
    if target != root.resolve() and root.resolve() not in target.parents:
        msg = f"template path escapes the project directory: {relative}"
        raise ValueError(msg)
    return target


class Scaffolder:
    """config.json and templates/ under the tool's data dir."""

    def __init__(self, data_dir: Path) -> None:
        self.templates_dir = data_dir / "templates"
        self.templates_dir.mkdir(parents=True, exist_ok=True)
        self.config = JsonStore(data_dir / "config.json", DEFAULT_CONFIG)

    def custom_path(self, name: str) -> Path:
        return self.templates_dir / f"{name}.json"

    def custom_names(self) -> list[str]:
        return [n for n in self.config.read()["custom_templates"] if self.custom_path(n).exists()]

    def get(self, name: str) -> Template:
        path = self.custom_path(name)
        if NAME_RE.match(name) and path.exists():
            try:
                raw = json.loads(path.read_text())
            except json.JSONDecodeError as exc:
                msg = f"{path} is not valid JSON ({exc.msg} at line {exc.lineno})"
                raise ValueError(msg) from exc
            return Template.from_dict(name, raw, custom=True)
        if name in BUILTIN_TEMPLATES:
            return Template.from_dict(name, BUILTIN_TEMPLATES[name])
        msg = f"template '{name}' not found (run 'scaffold list' to see available templates)"
        raise KeyError(msg)

    def variables(self) -> dict[str, str]:
        return {k: str(v or "") for k, v in self.config.read()["variables"].items()}

    def set_variables(self, **values: str) -> dict[str, str]:
        with self.config.update() as doc:
            doc["variables"].update(values)
            updated = dict(doc["variables"])
        logger.info("scaffold variables updated")
        return updated

    def placeholders(self, project: str) -> dict[str, str]:
        v = self.variables()
        return {
            "PROJECT_NAME": project,
            "AUTHOR": v.get("author", ""),
            "EMAIL": v.get("email", ""),
            "GITHUB_USERNAME": v.get("github_username", ""),
            "YEAR": str(dates.today().year),
        }

    def create(self, template: str, project: str, parent: Path, run_commands: bool = True) -> CreatedProject:
        validate_name(project)
        tpl = self.get(template)
        values = self.placeholders(project)
        root = parent / project
        root.mkdir(parents=True, exist_ok=True)
        created = CreatedProject(path=root, directories=[], files=[], commands=[])

        for d in tpl.directories:
            rel = substitute(d, values)
            _inside(root, rel).mkdir(parents=True, exist_ok=True)
            created.directories.append(rel)
        for name, content in tpl.files.items():
            rel = substitute(name, values)
            write_text(_inside(root, rel), substitute(content, values))
            created.files.append(rel)
        if run_commands:
            for cmd in tpl.post_create:
                actual = substitute(cmd, values)
                # Post-create commands are shell lines from the template author
                result = subprocess.run(actual, shell=True, cwd=root, check=False, capture_output=True, text=True)
                if result.returncode != 0:
                    logger.warning("post-create command failed (%d): %s", result.returncode, actual)
                created.commands.append((actual, result.returncode))
        logger.info("created %s from %s at %s", project, template, root)
        return created

    def add_custom(self, name: str, overwrite: bool = False) -> Path:
        validate_name(name, "template")
        path = self.custom_path(name)
        if path.exists() and not overwrite:
            msg = f"template '{name}' already exists"
            raise FileExistsError(msg)
        write_json(path, CUSTOM_SKELETON)
        with self.config.update() as doc:
            doc["custom_templates"] = sorted(set(doc["custom_templates"]) | {name})
        logger.info("custom template added: %s", name)
        return path

    def require_custom(self, name: str) -> Path:
        path = self.custom_path(name)
        if not NAME_RE.match(name) or not path.exists():
            msg = f"custom template '{name}' not found"
            raise KeyError(msg)
        return path

    def remove_custom(self, name: str) -> None:
        self.require_custom(name).unlink()
        with self.config.update() as doc:
            doc["custom_templates"] = [n for n in doc["custom_templates"] if n != name]
        logger.info("custom template removed: %s", name)


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def _scaffolder() -> Scaffolder:
    return Scaffolder(load_config().tool_dir("scaffold"))


@tool_group("scaffold")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Project scaffolding from templates."""
    if ctx.invoked_subcommand is None:
        ctx.invoke(list_cmd)


@cli.command("list")
def list_cmd() -> None:
    """Built-in and custom templates."""
    sc = _scaffolder()
    header("Available Templates")
    click.echo()
    click.secho("Built-in templates:", fg="yellow")
    click.echo()
    for name, tpl in BUILTIN_TEMPLATES.items():
        click.echo(f"  {click.style(f'{name:<18}', fg='green')} {tpl['description']}")
    custom = sc.custom_names()
    if custom:
        click.echo()
        click.secho("Custom templates:", fg="yellow")
        click.echo()
        for name in custom:
            click.echo(f"  {click.style(f'{name:<18}', fg='magenta')} {sc.get(name).description}")
    click.echo()
    click.secho("Usage:", fg="cyan")
    click.echo("  scaffold create <template> <project-name> [path]")
    click.echo()
    click.secho("Examples:", fg="cyan")
    click.echo("  scaffold create python-cli my-tool")
    click.echo("  scaffold create bash-script backup-script ~/projects")


@cli.command()
@click.argument("template")
def show(template: str) -> None:
    """Files, directories and commands of a template."""
    tpl = _scaffolder().get(template)
    header(f"Template: {tpl.name}")
    click.echo()
    click.echo(f"{click.style('Description:', fg='cyan')} {tpl.description or 'No description'}")
    click.echo()
    click.secho("Files created:", fg="yellow")
    for name in sorted(tpl.files):
        click.echo(f"  - {name}")
    if tpl.directories:
        click.echo()
        click.secho("Directories:", fg="yellow")
        for d in tpl.directories:
            click.echo(f"  - {d}/")
    if tpl.post_create:
        click.echo()
        click.secho("Post-create commands:", fg="yellow")
        for cmd in tpl.post_create:
            click.echo(f"  - {cmd}")


@cli.command()
@click.argument("template")
@click.argument("name")
@click.argument("path", type=click.Path(file_okay=False), default=".")
@click.option("--yes", "-y", is_flag=True, help="Reuse an existing directory without asking")
@click.option("--no-commands", is_flag=True, help="Skip the template's post-create commands")
def create(template: str, name: str, path: str, yes: bool, no_commands: bool) -> None:
    """Create project NAME from TEMPLATE inside PATH."""
    sc = _scaffolder()
    validate_name(name)
    sc.get(template)
    target = Path(path) / name
    if target.is_dir():
        click.echo(f"{click.style('Directory already exists:', fg='yellow')} {target}")
        if not yes and not click.confirm("Overwrite?", default=False):
            click.echo("Cancelled.")
            return
    click.echo(f"{click.style('Creating project:', fg='green')} {name}")
    click.echo(f"{click.style('Template:', fg='cyan')} {template}")
    click.echo(f"{click.style('Location:', fg='cyan')} {target}")
    click.echo()
    created = sc.create(template, name, Path(path), run_commands=not no_commands)
    for d in created.directories:
        click.echo(f"  {click.style('Created:', fg='cyan')} {d}/")
    for f in created.files:
        click.echo(f"  {click.style('Created:', fg='green')} {f}")
    if created.commands:
        click.echo()
        click.secho("Running post-create commands:", fg="yellow")
        for cmd, code in created.commands:
            suffix = "" if code == 0 else click.style(f" (exit {code})", fg="red")
            click.echo(f"  {click.style('$ ' + cmd, dim=True)}{suffix}")
    click.echo()
    click.secho("Project created successfully!", fg="green")
    click.echo()
    click.secho("Next steps:", fg="cyan")
    click.echo(f"  cd {target}")
    for step in NEXT_STEPS.get(template, []):
        click.echo(f"  {substitute(step, {'PROJECT_NAME': name})}")


@cli.command()
@click.argument("name")
@click.option("--edit/--no-edit", default=None, help="Open the new template in the editor")
def add(name: str, edit: bool | None) -> None:
    """Create a custom template skeleton."""
    cfg = load_config()
    sc = Scaffolder(cfg.tool_dir("scaffold"))
    validate_name(name, "template")
    overwrite = False
    if sc.custom_path(name).exists():
        click.secho(f"Template '{name}' already exists.", fg="yellow")
        if not click.confirm("Overwrite?", default=False):
            return
        overwrite = True
    path = sc.add_custom(name, overwrite=overwrite)
    click.echo(f"{click.style('Created template:', fg='green')} {name}")
    click.echo(f"{click.style('Edit:', fg='cyan')} {path}")
    if edit is None:
        edit = click.confirm("Open in editor?", default=True)
    if edit:
        open_editor(path, cfg)
        sc.get(name)


@cli.command()
@click.argument("name")
def edit(name: str) -> None:
    """Edit a custom template in the editor."""
    cfg = load_config()
    sc = Scaffolder(cfg.tool_dir("scaffold"))
    open_editor(sc.require_custom(name), cfg)
    sc.get(name)
    click.secho(f"Template '{name}' updated.", fg="green")


@cli.command()
@click.argument("name")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
def remove(name: str, yes: bool) -> None:
    """Delete a custom template."""
    sc = _scaffolder()
    sc.require_custom(name)
    click.echo(f"{click.style('About to delete template:', fg='yellow')} {name}")
    if not yes and not click.confirm("Are you sure?", default=False):
        click.echo("Cancelled.")
        return
    sc.remove_custom(name)
    click.echo(f"{click.style('Deleted template:', fg='red')} {name}")


@cli.command("config")
@click.option("--author", default=None)
@click.option("--email", default=None)
@click.option("--github", "github_username", default=None)
def config_cmd(author: str | None, email: str | None, github_username: str | None) -> None:
    """Set the author, email and GitHub username used in templates."""
    sc = _scaffolder()
    current = sc.variables()
    header("Configure Default Variables")
    click.echo()
    click.echo("These values will be substituted in templates.")
    click.echo()
    given = {"author": author, "email": email, "github_username": github_username}
    if all(v is None for v in given.values()):
        given = {
            "author": click.prompt("Author name", default=current.get("author", ""), show_default=True),
            "email": click.prompt("Email", default=current.get("email", ""), show_default=True),
            "github_username": click.prompt(
                "GitHub username", default=current.get("github_username", ""), show_default=True,
            ),
        }
    sc.set_variables(**{k: v for k, v in given.items() if v is not None})
    click.secho("Configuration saved.", fg="green")


cli.add_command(create, name="new")
cli.add_command(create, name="init")
cli.add_command(list_cmd, name="ls")
cli.add_command(show, name="info")
cli.add_command(remove, name="rm")
cli.add_command(remove, name="delete")
cli.add_command(config_cmd, name="configure")


def main() -> None:
    setup_logging()
    cli(standalone_mode=True)
