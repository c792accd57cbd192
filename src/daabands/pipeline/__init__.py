# Pipeline package
