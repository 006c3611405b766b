"""CLI main entry point."""

import logging

import click

from .changes import deduplicate_by_issue, group_by_week, load_changes_json, write_changes_json
from .config import Config, validate_site_url
from .content import ContentManager
from .errors import DigestException
from .github_client import CommentClient
from .log import setup as setup_log
from .minutes_tracking import MinutesTracker
from .site import SiteGenerator
from .state import StateManager
from .utils import get_now

logger = logging.getLogger(__name__)


def load_config(config_path: str | None) -> Config:
    if config_path:
        return Config.load_from_file(config_path)
    return Config.load_from_env()


@click.group()
@click.option("--config", "-c", default=None, help="Configuration file path")
@click.pass_context
def cli(ctx, config: str | None):
    """Weekly digest of the Go proposal review meeting minutes."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config


@cli.command(name="parse")
@click.option("--state", "state_path", default=None, help="Path to the state file")
@click.option("--output", "output_path", default=None, help="Path to the changes.json output")
@click.option(
    "--token",
    envvar="GITHUB_TOKEN",
    default=None,
    help="GitHub API token (defaults to $GITHUB_TOKEN)",
)
@click.pass_context
def parse(ctx, state_path: str | None, output_path: str | None, token: str | None):
    """Fetch new minutes comments and write the detected status changes."""
    try:
        cfg = load_config(ctx.obj["config_path"])
        setup_log(cfg.log_file)

        if token:
            cfg.github.token = token
        state_manager = StateManager(state_path or cfg.state_file)
        tracker = MinutesTracker(CommentClient(cfg.github), state_manager)

        result = tracker.fetch_changes()
        write_changes_json(
            result.changes,
            output_path or cfg.changes_file,
            now=get_now(cfg.get_timezone()),
        )
        tracker.commit(result)
    except DigestException as e:
        logger.error(f"Application error: {e}", exc_info=True)
        raise click.ClickException(str(e))

    click.echo(f"has_changes={'true' if result.has_changes else 'false'}")
    click.echo(f"changes_count={len(result.changes)}")


@cli.command(name="integrate")
@click.option("--changes", "changes_path", default=None, help="Path to changes.json")
@click.option("--content", "content_dir", default=None, help="Path to the content directory")
@click.option("--summaries", "summaries_dir", default=None, help="Path to the summaries directory")
@click.pass_context
def integrate(ctx, changes_path: str | None, content_dir: str | None, summaries_dir: str | None):
    """Merge changes and summaries into the weekly content files."""
    try:
        cfg = load_config(ctx.obj["config_path"])
        setup_log(cfg.log_file)

        changes_file = load_changes_json(changes_path or cfg.changes_file)
        if not changes_file.changes:
            logger.info("No changes to integrate")
            return

        manager = ContentManager(
            content_dir or cfg.content_dir,
            summaries_dir or cfg.summaries_dir,
            issue_url_base=cfg.site.issue_url_base,
        )
        weekly = group_by_week(changes_file.changes)
        logger.info(f"Grouped {len(changes_file.changes)} change(s) into {len(weekly)} week(s)")

        summaries = manager.read_summaries()
        for week_key, changes in weekly.items():
            deduped = deduplicate_by_issue(changes)
            if len(deduped) != len(changes):
                logger.info(f"{week_key}: deduplicated {len(changes)} change(s) to {len(deduped)}")

            content = manager.prepare_content(deduped)
            manager.integrate_summaries(content, summaries)
            manager.apply_fallback(content)
            manager.write_content_with_merge(content)
    except DigestException as e:
        logger.error(f"Application error: {e}", exc_info=True)
        raise click.ClickException(str(e))


@cli.command(name="generate")
@click.option("--content", "content_dir", default=None, help="Directory containing content files")
@click.option("--dist", "dist_dir", default=None, help="Output directory for generated files")
@click.option("--site-url", default=None, help="Site URL used in links and the RSS feed")
@click.pass_context
def generate(ctx, content_dir: str | None, dist_dir: str | None, site_url: str | None):
    """Render the static site and RSS feed from the content directory."""
    try:
        cfg = load_config(ctx.obj["config_path"])
        setup_log(cfg.log_file)

        site = cfg.site
        if site_url:
            try:
                site = site.model_copy(update={"url": validate_site_url(site_url)})
            except ValueError as e:
                raise click.BadParameter(str(e), param_hint="--site-url")

        manager = ContentManager(content_dir or cfg.content_dir, issue_url_base=site.issue_url_base)
        weeks = manager.list_all_weeks()
        logger.info(f"Found {len(weeks)} week(s) of content")

        SiteGenerator(dist_dir or cfg.dist_dir, site).generate(weeks)
    except DigestException as e:
        logger.error(f"Application error: {e}", exc_info=True)
        raise click.ClickException(str(e))


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
