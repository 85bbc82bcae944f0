"""Simple example showing role aggregation and permission checks."""

import asyncio

from rolegate import PrincipalContext
from rolegate.sources import InMemoryRoleSource


async def main():
    """Basic permission check example."""
    # Two roles held by the same user in one organization
    source = InMemoryRoleSource(
        {
            ("user-123", "org-456"): [
                {"role_uuid": "viewer", "policy": '{"data": {"view": ["task"]}}'},
                {
                    "role_uuid": "creator",
                    "policy": '{"data": {"view": ["user_basic_info"]}, "features": {"execute": ["create_task"]}}',
                },
            ]
        }
    )

    session = PrincipalContext(source)
    await session.set_context("user-123", "org-456")

    print(f"State: {session.state.value}")
    print(f"Effective policy: {session.policy.to_json()}")
    for action, resource in [("view", "task"), ("execute", "create_task"), ("execute", "delete_task")]:
        verdict = "allowed" if session.allowed(action, resource) else "denied"
        print(f"{action} {resource}: {verdict}")


if __name__ == "__main__":
    asyncio.run(main())
