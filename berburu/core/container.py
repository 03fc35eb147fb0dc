"""Dependency-injection container.

This module defines a dependency-injection (DI) container that wires together
the application's components. This approach to DI helps to decouple the
application's components and makes them easier to test and maintain.
"""

from dependency_injector import containers, providers

from berburu.api.analysis_orchestrator import AnalysisOrchestrator
from berburu.config import config as app_config
from berburu.services.archival import BackgroundArchiver, FilesystemArchivalSink
from berburu.services.cache_service import CacheService
from berburu.services.classifier import HttpImageClassifier
from berburu.services.image_pipeline import ImageAcquisitionPipeline


def create_image_classifier() -> HttpImageClassifier | None:
    """Classifier client when an endpoint is configured, None otherwise."""
    if not app_config.classifier.url:
        return None
    return HttpImageClassifier(app_config.classifier.url, timeout=app_config.classifier.timeout)


class Container(containers.DeclarativeContainer):
    """DI container for the application.

    This container holds the wiring for all the application's components.
    """

    # Services
    cache_service = providers.Singleton(CacheService, config=app_config.cache)
    image_pipeline = providers.Singleton(ImageAcquisitionPipeline)
    image_classifier = providers.Singleton(create_image_classifier)
    archival_sink = providers.Singleton(FilesystemArchivalSink, root_dir=app_config.archive.root_dir)
    background_archiver = providers.Singleton(BackgroundArchiver, sink=archival_sink)

    # API components
    analysis_orchestrator = providers.Singleton(
        AnalysisOrchestrator,
        cache_service=cache_service,
        image_pipeline=image_pipeline,
        classifier=image_classifier,
        archiver=background_archiver,
    )
