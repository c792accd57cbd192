# Publishing package
