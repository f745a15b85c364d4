import logging
import click

from .acl import acl

@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log ACL changes to stderr")
def cli(verbose):
    if verbose:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

cli.add_command(acl,"acl")

if __name__ == '__main__':
    cli()
