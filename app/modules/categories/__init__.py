# Categories module
