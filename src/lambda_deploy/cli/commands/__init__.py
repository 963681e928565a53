"""Click commands registered on the lambda-deploy group."""
