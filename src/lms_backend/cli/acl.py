import functools
import click

from lms_backend.database import get_db, init_db
from lms_backend.interface.permissions import ContentKind, GranteeType, PermissionType
from lms_backend.permissions.exceptions import AclError, ContentNotFound
from lms_backend.permissions.lookups import DatabaseRoleLookup
from lms_backend.permissions.service import AclService
from lms_backend.seeder import seed_builtin_roles

CONTENT_KINDS = [kind.value for kind in ContentKind]
PERMISSIONS = [permission.value for permission in PermissionType]


def handle_acl_errors(func):
  @functools.wraps(func)
  def wrapper(*args, **kwargs):
    try:
      return func(*args, **kwargs)
    except AclError as e:
      click.echo(f"[{click.style(e.status_code,fg='red')}] {e}", err=True)
      raise click.exceptions.Exit(1)

  return wrapper


def resolve_grantee(db, role: str, user: int):
  if (role is None) == (user is None):
    raise click.UsageError("Pass exactly one of --role or --user")

  if user is not None:
    return GranteeType.USER, user

  role_id = DatabaseRoleLookup(db).get_role_id(role)
  if role_id is None:
    raise click.BadParameter(f"Role '{role}' does not exist", param_hint="--role")
  return GranteeType.ROLE, role_id


def load_or_fail(service: AclService, kind: str, content_id: int):
  content = service.load_content(kind, content_id)
  if content is None:
    raise ContentNotFound(kind, content_id, f"{kind} {content_id} not found")
  return content


def grantee_options(func):
  func = click.option("--user", "-u", "user", type=int, help="User id to grant to")(func)
  func = click.option("--role", "-r", "role", type=str, help="Role name to grant to")(func)
  return func


@click.command()
def init_database():
  init_db()
  click.echo("Database tables created")


@click.command()
def seed_roles():
  with next(get_db()) as db:
    created = seed_builtin_roles(db)
  click.echo(f"Created {created} roles")


@click.command()
@click.argument("kind", type=click.Choice(CONTENT_KINDS))
@click.argument("content_id", type=int)
@click.argument("permission", type=click.Choice(PERMISSIONS))
@grantee_options
@handle_acl_errors
def grant(kind, content_id, permission, role, user):

  with next(get_db()) as db:
    service = AclService(db)
    content = load_or_fail(service, kind, content_id)
    grantee_type, grantee_id = resolve_grantee(db, role, user)

    if service.grant_permission(content, permission, grantee_type, grantee_id):
      click.echo(f"Granted {permission} on {kind}:{content_id} to {grantee_type.value}:{grantee_id}")
    else:
      click.echo(f"{grantee_type.value}:{grantee_id} already holds {permission} on {kind}:{content_id}")


@click.command()
@click.argument("kind", type=click.Choice(CONTENT_KINDS))
@click.argument("content_id", type=int)
@click.argument("permission", type=click.Choice(PERMISSIONS))
@grantee_options
@handle_acl_errors
def revoke(kind, content_id, permission, role, user):

  with next(get_db()) as db:
    service = AclService(db)
    content = load_or_fail(service, kind, content_id)
    grantee_type, grantee_id = resolve_grantee(db, role, user)

    if service.revoke_permission(content, permission, grantee_type, grantee_id):
      click.echo(f"Revoked {permission} on {kind}:{content_id} from {grantee_type.value}:{grantee_id}")
    else:
      click.echo(f"No {permission} entry on {kind}:{content_id} for {grantee_type.value}:{grantee_id}")


@click.command()
@click.argument("kind", type=click.Choice(CONTENT_KINDS))
@click.argument("content_id", type=int)
@handle_acl_errors
def make_public(kind, content_id):

  with next(get_db()) as db:
    service = AclService(db)
    service.make_content_public(load_or_fail(service, kind, content_id))
  click.echo(f"{kind}:{content_id} is visible to students")


@click.command()
@click.argument("kind", type=click.Choice(CONTENT_KINDS))
@click.argument("content_id", type=int)
@click.confirmation_option(prompt="This removes every ACL entry of the item, manage grants included. Continue?")
@handle_acl_errors
def make_private(kind, content_id):

  with next(get_db()) as db:
    service = AclService(db)
    deleted = service.make_content_private(load_or_fail(service, kind, content_id))
  click.echo(f"Removed {deleted} entries from {kind}:{content_id}")


@click.command()
@click.argument("kind", type=click.Choice(CONTENT_KINDS))
@click.argument("content_id", type=int)
@handle_acl_errors
def show(kind, content_id):

  with next(get_db()) as db:
    service = AclService(db)
    content = load_or_fail(service, kind, content_id)
    entries = service.store.entries_for(content.content_ref)

    if not entries:
      click.echo(f"{kind}:{content_id} has no ACL entries")
      return

    for entry in entries:
      click.echo(f"{entry.permission_type.value:<8} {entry.grantee_type.value}:{entry.grantee_id}")


@click.command()
@click.argument("kinds", nargs=-1, type=click.Choice(CONTENT_KINDS))
@handle_acl_errors
def backfill(kinds):

  with next(get_db()) as db:
    service = AclService(db)
    for kind in kinds or CONTENT_KINDS:
      count = service.backfill_default_permissions(kind)
      click.echo(f"{kind}: {count} items received default permissions")


@click.command()
@handle_acl_errors
def prune():

  with next(get_db()) as db:
    count = AclService(db).purge_orphaned_entries()
  click.echo(f"Removed ACL entries of {count} deleted content items")


@click.group()
def acl():
    pass

acl.add_command(init_database,"init-db")
acl.add_command(seed_roles,"seed-roles")
acl.add_command(grant,"grant")
acl.add_command(revoke,"revoke")
acl.add_command(make_public,"public")
acl.add_command(make_private,"private")
acl.add_command(show,"show")
acl.add_command(backfill,"backfill")
acl.add_command(prune,"prune")
