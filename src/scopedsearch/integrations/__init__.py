"""
scopedsearch integrations.

Web framework integrations live in submodules so their dependencies stay
optional:

    from scopedsearch.integrations.fastapi import mount_search
"""
