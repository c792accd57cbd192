# Detection package
