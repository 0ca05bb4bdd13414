import archsetup

if __name__ == '__main__':
	archsetup.run_as_a_module()
