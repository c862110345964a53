# API module
# Import servers from their own modules; services.logger_service imports api.serialization.
