#!/usr/bin/env python3
"""
Logging Configuration for the booking core
Provides detailed logging for debugging slot computation and submissions
"""

import logging
import logging.handlers
import os
import shutil
from datetime import datetime
from typing import Optional

from infrastructure.settings import AppSettings, get_settings

# Component loggers that also write to the dedicated reservations log
RESERVATION_LOGGERS = (
    'SlotGridBuilder',
    'ReservationStore',
    'RecurringReconciler',
    'BookingSubmission',
    'ReservationService',
    'BookingApiClient',
    'ReservationModels',
)

# Loggers kept at INFO in production; everything else follows the root level
PRODUCTION_INFO_LOGGERS = (
    'ReservationStore',
    'RecurringReconciler',
    'BookingSubmission',
    'ReservationService',
)


def resolve_log_dir(settings: AppSettings) -> str:
    """Return the absolute 'latest_log' directory for ``settings``."""

    base = settings.log_directory
    if not os.path.isabs(base):
        base = os.path.join(os.path.dirname(os.path.abspath(__file__)), base)
    return os.path.join(base, 'latest_log')


def setup_logging(settings: Optional[AppSettings] = None, *, clear_previous: bool = True) -> str:
    """
    Set up logging with console, rotating file and per-component handlers.

    Previous logs in the 'latest_log' directory are removed first unless
    ``clear_previous`` is False. Returns the directory the logs are written to.
    """
    settings = settings or get_settings()
    production_mode = settings.production_mode
    log_dir = resolve_log_dir(settings)

    if clear_previous and os.path.exists(log_dir):
        for filename in os.listdir(log_dir):
            file_path = os.path.join(log_dir, filename)
            try:
                if os.path.isfile(file_path) or os.path.islink(file_path):
                    os.unlink(file_path)
                elif os.path.isdir(file_path):
                    shutil.rmtree(file_path)
            except OSError as e:
                print(f'Failed to delete {file_path}. Reason: {e}')

    os.makedirs(log_dir, exist_ok=True)

    # Log file paths
    main_log_file = os.path.join(log_dir, 'core.log')
    debug_log_file = os.path.join(log_dir, 'core_debug.log')
    error_log_file = os.path.join(log_dir, 'core_errors.log')
    reservations_log_file = os.path.join(log_dir, 'reservations.log')

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.WARNING if production_mode else logging.DEBUG)
    root_logger.handlers = []

    # Detailed formatter with file, line, and function information
    detailed_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d in %(funcName)s()] - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # Console formatter (less detailed for readability)
    console_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.WARNING if production_mode else logging.INFO)
    console_handler.setFormatter(console_formatter)
    root_logger.addHandler(console_handler)

    main_file_handler = logging.handlers.RotatingFileHandler(
        main_log_file,
        maxBytes=10*1024*1024,  # 10MB
        backupCount=5,
        encoding='utf-8'
    )
    main_file_handler.setLevel(logging.WARNING if production_mode else logging.INFO)
    main_file_handler.setFormatter(detailed_formatter)
    root_logger.addHandler(main_file_handler)

    # Debug log file handler - only enabled in development mode
    if not production_mode:
        debug_file_handler = logging.handlers.RotatingFileHandler(
            debug_log_file,
            maxBytes=50*1024*1024,  # 50MB
            backupCount=3,
            encoding='utf-8'
        )
        debug_file_handler.setLevel(logging.DEBUG)
        debug_file_handler.setFormatter(detailed_formatter)
        root_logger.addHandler(debug_file_handler)

    error_file_handler = logging.handlers.RotatingFileHandler(
        error_log_file,
        maxBytes=5*1024*1024,  # 5MB
        backupCount=5,
        encoding='utf-8'
    )
    error_file_handler.setLevel(logging.ERROR)
    error_file_handler.setFormatter(detailed_formatter)
    root_logger.addHandler(error_file_handler)

    # Dedicated log for grid, store, reconciler and submission activity
    reservations_handler = logging.handlers.RotatingFileHandler(
        reservations_log_file,
        maxBytes=20*1024*1024,  # 20MB
        backupCount=5,
        encoding='utf-8'
    )
    reservations_handler.setLevel(logging.INFO if production_mode else logging.DEBUG)
    reservations_handler.setFormatter(detailed_formatter)

    for name in RESERVATION_LOGGERS:
        component_logger = logging.getLogger(name)
        for handler in list(component_logger.handlers):
            if isinstance(handler, logging.handlers.RotatingFileHandler):
                component_logger.removeHandler(handler)
                handler.close()
        component_logger.addHandler(reservations_handler)
        if production_mode:
            component_logger.setLevel(
                logging.INFO if name in PRODUCTION_INFO_LOGGERS else logging.WARNING
            )
        else:
            component_logger.setLevel(logging.DEBUG)

    # Reduce noise from external libraries
    logging.getLogger('httpx').setLevel(logging.WARNING)
    logging.getLogger('httpcore').setLevel(logging.WARNING)
    logging.getLogger('asyncio').setLevel(logging.WARNING)

    root_logger.info("="*80)
    root_logger.info(f"Booking core logging initialized - {datetime.now()}")
    root_logger.info(f"Production Mode: {'ON' if production_mode else 'OFF'}")
    root_logger.info(f"Log Level: {'WARNING+' if production_mode else 'DEBUG+'}")
    root_logger.info(f"Main log: {main_log_file}")
    if not production_mode:
        root_logger.info(f"Debug log: {debug_log_file}")
    root_logger.info(f"Error log: {error_log_file}")
    root_logger.info(f"Reservations log: {reservations_log_file}")
    root_logger.info("="*80)
    return log_dir

