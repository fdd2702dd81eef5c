"""
Initial setup of the API: database tables, the token signing key pair and the
reserved group. Each step is skipped when its result already exists.
"""

from structlog import get_logger

from groupactions.config.settings import Settings
from groupactions.core.cryptography import (
    generate_key_pair,
    read_key_pair,
    write_key_pair,
)


def load_key_pair(settings: Settings) -> tuple[bytes, bytes]:
    """
    Read the signing key pair from `settings.public_key_filename` and
    `settings.private_key_filename`. When the files are missing they are
    created if `settings.create_files` is set. Without configured paths an
    ephemeral pair is generated; tokens then only survive until restart.
    """
    public_path = settings.public_key_filename
    private_path = settings.private_key_filename

    if public_path is None or private_path is None:
        get_logger().warning("setup.keys.ephemeral")
        return generate_key_pair(
            key_pair_type=settings.key_pair_type, key_password=settings.key_password
        )

    if public_path.exists() and private_path.exists():
        return read_key_pair(public_path=public_path, private_path=private_path)

    if not settings.create_files:
        raise RuntimeError(f"Key files not found: {public_path}, {private_path}")

    public, private = generate_key_pair(
        key_pair_type=settings.key_pair_type, key_password=settings.key_password
    )
    write_key_pair(
        public_key=public,
        private_key=private,
        public_path=public_path,
        private_path=private_path,
    )
    get_logger().info("setup.keys.written", public_key_filename=str(public_path))

    return public, private


async def initial_setup(settings: Settings):
    """
    Create the tables, the key pair and, if `settings.initial_admin` is set,
    the admin user and the reserved group they own.
    """
    from groupactions.database.group import Group
    from groupactions.database.meta import ALL_TABLES
    from groupactions.service import groups as groups_service
    from groupactions.service import user as user_service

    # Ensure ruff doesn't get rid of import
    ALL_TABLES[1]

    log = get_logger()
    manager = settings.async_manager()
    await manager.create_all()

    load_key_pair(settings)
    settings.media_path.mkdir(parents=True, exist_ok=True)

    if not settings.initial_admin:
        await manager.dispose()
        return

    async with manager.session() as conn:
        async with conn.begin():
            try:
                admin = await user_service.read_by_name(
                    user_name=settings.initial_admin, conn=conn
                )
            except user_service.UserNotFound:
                admin = await user_service.create(
                    user_name=settings.initial_admin, conn=conn, log=log
                )

            if await conn.get(Group, settings.reserved_group_id) is None:
                group = await groups_service.create(
                    name="Everyone",
                    created_by_user_id=admin.user_id,
                    settings=settings,
                    conn=conn,
                    log=log,
                    private=True,
                )

                if group.group_id != settings.reserved_group_id:
                    await log.awarn(
                        "setup.reserved_group.mismatch",
                        group_id=group.group_id,
                        reserved_group_id=settings.reserved_group_id,
                    )

    await manager.dispose()
