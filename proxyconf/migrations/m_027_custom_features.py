"""Migration 2.7: introduce the custom proxy feature options.

Adds chat, Forge, fallback, connection logging, minimum version and
server brand/ping options, each with its default and documentation.
"""

from __future__ import annotations

from proxyconf.migrations.step import ConfigOption, feature_step

OPTIONS: tuple[ConfigOption, ...] = (
    ConfigOption(
        "advanced.allow-illegal-characters-in-chat",
        False,
        "Enables the execution of illegal characters in chat and only allows\n"
        "or denies illegal characters that are executed through the proxy.",
    ),
    ConfigOption(
        "disable-forge",
        False,
        "If true, disables handling of inbound Forge handshakes.",
    ),
    ConfigOption(
        "enable-dynamic-fallbacks",
        False,
        "Sends you to the least populated fallback server, instead of the first "
        "available fallback server.\n"
        "Keep this false if you only have one fallback server.",
    ),
    ConfigOption(
        "enforce-chat-signing",
        False,
        "Whether chat signing should be enforced. If disabled, backend servers "
        "MUST disable chat signing.",
    ),
    ConfigOption(
        "log-offline-connections",
        True,
        "If false, disables logging for offline player connections.",
    ),
    ConfigOption(
        "log-player-connections",
        True,
        "Enables logging of player connections and by default, still displays\n"
        "player disconnections and initial connections.",
    ),
    ConfigOption(
        "log-player-disconnections",
        True,
        "Enables logging of player disconnection and by default, still displays\n"
        "player connections and initial connections.",
    ),
    ConfigOption(
        "translate-header-footer",
        True,
        "If false, disables processing of header and footer translations for "
        "better performance.",
    ),
    ConfigOption(
        "minimum-version",
        "1.7.2",
        "Modify the minimum version, so the proxy blocks out users on the wrong "
        "version, rather than the backend server.\n"
        "Modern forwarding supports 1.13, at minimum. Set this to 1.13 or above "
        "if you are using modern forwarding.",
    ),
    ConfigOption(
        "log-minimum-version",
        False,
        "If true, a message is pasted in console displaying whether a user joined "
        "on an unsupported version.\n"
        'This corresponds with the "minimum-version" and '
        '"modern-forwarding-needs-new-client" values.',
    ),
    ConfigOption(
        "advanced.server-brand",
        "{0} ({1})",
        "Modifies the server brand that displays in your debug menu.",
    ),
    ConfigOption(
        "advanced.outdated-version-ping",
        "{protocol-min}-{protocol-max} ({proxy-brand})",
        "Modifies the server version that displays in some server status pinging sites.",
    ),
    ConfigOption(
        "advanced.fallback-version-ping",
        "{proxy-brand} {protocol-min}-{protocol-max}",
        "Modifies the server version that displays in the multiplayer menu when "
        "no passthrough occurs.",
    ),
)

STEP = feature_step("2.7", OPTIONS, description="Custom proxy feature options")
