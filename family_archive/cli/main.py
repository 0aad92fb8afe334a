"""Family Archive CLI - Main entry point.

This module provides the command-line interface for managing the archive
database and inspecting the family tree.
"""

import typer
from rich.console import Console
from rich.table import Table
from rich.tree import Tree

from family_archive import __version__
from family_archive.config import settings
from family_archive.family import FamilyForest, FamilyNode, build_family_forest
from family_archive.logging_config import configure_logging
from family_archive.sample_data import seed_sample_family
from family_archive.storage import ArchiveDatabase, PersonRepository, RelationshipStore

app = typer.Typer(
    name="archive",
    help="Family Archive - Manage family members, relationships and documents",
    add_completion=False,
)
console = Console()

DB_OPTION = typer.Option(settings.database_url, "--db", help="SQLAlchemy database URL")


@app.callback()
def main(
    log_level: str = typer.Option(settings.log_level, "--log-level", help="Logging level"),
) -> None:
    configure_logging(log_level)


@app.command("init-db")
def init_db(
    db_url: str = DB_OPTION,
    reset: bool = typer.Option(False, "--reset", help="Drop all tables before creating them"),
) -> None:
    """Create the database tables."""
    with ArchiveDatabase(db_url) as db:
        if reset:
            db.reset_database()
    console.print(f"\n[bold green]Database ready:[/bold green] {db_url}\n")


@app.command()
def seed(db_url: str = DB_OPTION) -> None:
    """Create a sample family: two parents and two children."""
    with ArchiveDatabase(db_url) as db:
        family = seed_sample_family(db)
        stats = RelationshipStore(db).stats()

    console.print("\n[bold green]Sample data created![/bold green]\n")
    for role, person in family.items():
        console.print(f"  [dim]{role}:[/dim] {person.full_name}")
    console.print(f"\n  Relationships: {stats['total_relationships']}\n")


@app.command()
def stats(db_url: str = DB_OPTION) -> None:
    """Display archive statistics."""
    with ArchiveDatabase(db_url) as db:
        person_count = PersonRepository(db).count()
        relationship_stats = RelationshipStore(db).stats()

    console.print("\n[bold cyan]Family Archive Statistics[/bold cyan]\n")

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Metric", style="dim")
    table.add_column("Value", justify="right")

    table.add_row("Persons", str(person_count))
    table.add_row("Persons with relationships", str(relationship_stats["total_persons"]))
    table.add_row("Relationships", str(relationship_stats["total_relationships"]))
    for key, value in relationship_stats.items():
        if key.endswith("_relationships") and key != "total_relationships":
            table.add_row(f"  {key.removesuffix('_relationships')}", str(value))

    console.print(table)
    console.print()


def _label(node: FamilyNode) -> str:
    label = f"[bold blue]{node.full_name}[/bold blue]"
    if node.birth_date:
        label += f" [dim]b. {node.birth_date.isoformat()}[/dim]"
    if node.death_date:
        label += f" [dim]d. {node.death_date.isoformat()}[/dim]"
    if node.spouses:
        label += " [magenta]+ " + ", ".join(s.full_name for s in node.spouses) + "[/magenta]"
    return label


def render_tree(forest: FamilyForest, root: FamilyNode) -> Tree:
    """Render the descendants of ``root`` as a rich Tree.

    A person already shown under this root is not expanded again.
    """
    rich_root = Tree(_label(root))
    visited = {root.person_id}
    stack = [(root, rich_root)]
    while stack:
        node, branch = stack.pop()
        for child in node.children:
            child_node = forest.get(child.person_id)
            if child_node is None or child.person_id in visited:
                continue
            visited.add(child.person_id)
            stack.append((child_node, branch.add(_label(child_node))))
    return rich_root


@app.command()
def tree(
    person: str = typer.Option(None, "--person", "-p", help="Show only descendants of this person"),
    db_url: str = DB_OPTION,
) -> None:
    """Display the family tree.

    Without --person every root (a person with no recorded parent) is shown.
    """
    with ArchiveDatabase(db_url) as db:
        persons = PersonRepository(db)
        forest = build_family_forest(persons.list_all(), RelationshipStore(db).list_edges())

        if person:
            matches = persons.search(person)
            if not matches:
                console.print(f"[red]No person found matching '{person}'[/red]\n")
                raise typer.Exit(1)
            if len(matches) > 1:
                console.print(f"[yellow]Found {len(matches)} people matching '{person}':[/yellow]")
                for i, p in enumerate(matches, 1):
                    console.print(f"  {i}. {p.full_name} (ID: {p.id})")
                choice = typer.prompt("\nEnter number to view", type=int)
                if choice < 1 or choice > len(matches):
                    console.print("[red]Invalid choice[/red]")
                    raise typer.Exit(1)
                roots = [forest.get(matches[choice - 1].id)]
            else:
                roots = [forest.get(matches[0].id)]
        else:
            roots = forest.roots

    if not roots:
        console.print("[yellow]The archive has no persons yet.[/yellow]\n")
        return

    console.print()
    for root in roots:
        descendants = sum(1 for _ in forest.walk(root.person_id)) - 1
        console.print(render_tree(forest, root))
        console.print(f"[dim]{descendants} descendant(s)[/dim]\n")


@app.command()
def reconcile(
    fix: bool = typer.Option(False, "--fix", help="Insert the missing reverse edges"),
    db_url: str = DB_OPTION,
) -> None:
    """Report (and optionally repair) relationships missing their reverse edge."""
    with ArchiveDatabase(db_url) as db:
        store = RelationshipStore(db)
        found = store.reconcile() if fix else store.find_inconsistencies()

    if not found:
        console.print("\n[bold green]All relationships have their reverse edge.[/bold green]\n")
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Relation ID", style="dim")
    table.add_column("Person")
    table.add_column("Type")
    table.add_column("Relative")
    table.add_column("Missing reverse")
    for item in found:
        table.add_row(
            item.relation_id, item.person_id, item.relation_type, item.relative_id, item.expected_type
        )
    console.print(table)

    if fix:
        console.print(f"\n[bold green]Repaired {len(found)} relationship(s).[/bold green]\n")
    else:
        console.print(f"\n[yellow]{len(found)} inconsistent relationship(s). Run with --fix to repair.[/yellow]\n")
        raise typer.Exit(1)


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", "--host", help="Interface to bind"),
    port: int = typer.Option(5001, "--port", help="Port to listen on"),
    env: str = typer.Option("development", "--env", help="Configuration environment"),
) -> None:
    """Run the HTTP API server."""
    from family_archive.app import create_app

    quart_app = create_app(env)
    quart_app.run(host=host, port=port, debug=quart_app.config["DEBUG"])


@app.command()
def version() -> None:
    """Display version information."""
    console.print(f"\n[bold cyan]Family Archive[/bold cyan] version {__version__}\n")


if __name__ == "__main__":
    app()
