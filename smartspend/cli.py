# smartspend/cli.py
import anyio
import click
from dotenv import load_dotenv
from smartspend.app import SmartSpendApp
from smartspend.config import DEFAULT_CONFIG, load_config, save_config
from smartspend.core.models import MessageStatus, TransactionType


def _format_tx(tx):
    sign = '+' if tx.type is TransactionType.INCOME else '-'
    line = f"{tx.id:>16}  {tx.date.isoformat()}  {tx.description:<32} {tx.category:<15} {sign}${tx.amount:.2f}"
    if tx.is_anomaly:
        line += "  [Anomaly]"
    return line


@click.group()
@click.option(
    '--config', 'config_path',
    default='smartspend.yaml',
    type=click.Path(dir_okay=False),
    help='Path to smartspend.yaml (defaults are used when missing)'
)
@click.option(
    '--env-file', 'env_file',
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help='Optional .env file containing API tokens for AI providers'
)
@click.option(
    '--db', 'db_path',
    default=None,
    type=click.Path(dir_okay=False),
    help='SQLite database holding saved transactions (overrides config)'
)
@click.pass_context
def main(ctx, config_path, env_file, db_path):
    """
    Personal finance dashboard: import CSV statements, review spending,
    let an LLM categorize transactions and flag anomalies, ask for
    insights, or chat about your finances.
    """
    if env_file:
        load_dotenv(env_file)
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config_path
    ctx.obj['db_path'] = db_path


def _app(ctx):
    obj = ctx.ensure_object(dict)
    if 'app' not in obj:
        cfg = load_config(obj.get('config_path'))
        if obj.get('db_path'):
            cfg['db_path'] = obj['db_path']
        app = SmartSpendApp(cfg)
        ctx.call_on_close(app.close)
        obj['app'] = app
    return obj['app']


@main.command('init-config')
@click.argument('path', default='smartspend.yaml', type=click.Path(dir_okay=False))
def init_config(path):
    """Write the default configuration to PATH."""
    save_config(DEFAULT_CONFIG, path)
    click.echo(f"Wrote default configuration to {path}.")


@main.command('import')
@click.argument('csv_file', type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def import_csv(ctx, csv_file):
    """Append transactions from a Date,Description,Amount CSV file."""
    count = _app(ctx).transactions.import_file(csv_file)
    click.echo(f"Imported {count} transaction(s).")


@main.command('list')
@click.option('--search', default=None, help='Filter by description or category')
@click.pass_context
def list_transactions(ctx, search):
    """Show saved transactions."""
    txs = _app(ctx).transactions.filtered(search)
    if not txs:
        click.echo("No transactions found. Try importing a CSV.")
        return
    for tx in txs:
        click.echo(_format_tx(tx))


@main.command('summary')
@click.pass_context
def summary(ctx):
    """Show balance, category breakdown, monthly totals and anomalies."""
    dashboard = _app(ctx).dashboard
    totals = dashboard.summary
    click.echo(f"Total Balance:  ${totals['balance']:.2f}")
    click.echo(f"Total Income:   +${totals['income']:.2f}")
    click.echo(f"Total Expenses: -${totals['expense']:.2f}")

    click.echo("\nCategories:")
    for row in dashboard.category_data:
        click.echo(f"  {row['name']:<15} ${row['value']:.0f}")

    click.echo("\nMonthly:")
    for row in dashboard.monthly_data:
        click.echo(f"  {row['name']:<4} income ${row['income']:.2f}  expense ${row['expense']:.2f}")

    click.echo("\nAnomalies Detected:")
    flagged = dashboard.anomalies
    if not flagged:
        click.echo("  No unusual transactions detected.")
    for tx in flagged:
        click.echo(f"  {tx.date.isoformat()}  {tx.description}  -${tx.amount:.2f}")


@main.command('set-category')
@click.argument('tx_id')
@click.argument('category')
@click.pass_context
def set_category(ctx, tx_id, category):
    """Manually set the category of one transaction."""
    app = _app(ctx)
    allowed = app.config['categories']
    if category not in allowed:
        raise click.BadParameter(
            f"must be one of: {', '.join(allowed)}", param_hint='CATEGORY'
        )
    if not app.transactions.set_category(tx_id, category):
        raise click.ClickException(f"No transaction with id {tx_id}")
    click.echo(f"Transaction {tx_id} set to {category}.")


@main.command('categorize')
@click.pass_context
def categorize(ctx):
    """Ask the LLM to categorize uncategorized transactions and flag anomalies."""
    view = _app(ctx).transactions
    changed = anyio.run(view.run_auto_categorization)
    if view.error_message:
        click.echo(f"⚠️  {view.error_message}", err=True)
        return
    click.echo(f"Updated {changed} transaction(s).")


@main.command('insights')
@click.pass_context
def insights(ctx):
    """Ask the LLM for a few insights about recent spending."""
    dashboard = _app(ctx).dashboard
    text = anyio.run(dashboard.generate_insights)
    click.echo(text or "", err=dashboard.insight_error)


def _chat_turn(app, text):
    printed = {'n': 0}

    def on_update(message):
        click.echo(message.text[printed['n']:], nl=False)
        printed['n'] = len(message.text)

    reply = anyio.run(app.chat.send, text, on_update)
    if reply is None:
        return
    if printed['n']:
        click.echo()
    if reply.status is MessageStatus.FAILED:
        click.echo(app.chat.messages[-1].text, err=True)


@main.command('chat')
@click.option('--message', '-m', default=None, help='Send one message and exit')
@click.pass_context
def chat(ctx, message):
    """Chat with the finance assistant (type 'exit' to leave)."""
    app = _app(ctx)
    if message is not None:
        _chat_turn(app, message)
        return

    click.echo(app.chat.messages[0].text)
    while True:
        try:
            text = click.prompt('You', default='', show_default=False)
        except click.exceptions.Abort:
            break
        if text.strip().lower() in ('exit', 'quit'):
            break
        _chat_turn(app, text)
