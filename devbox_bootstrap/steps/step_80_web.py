from __future__ import annotations

from .base import PackagesStep, ServiceStep


def web_steps() -> list:
    """Apache plus certbot; certificates are issued by hand once DNS is in place."""

    return [
        PackagesStep("apache", ["apache2"], description="Installing Apache"),
        ServiceStep("apache_service", "apache2", requires=("apache",)),
        PackagesStep(
            "certbot",
            ["certbot", "python3-certbot-apache"],
            requires=("apache",),
            description="Installing Certbot",
        ),
    ]
