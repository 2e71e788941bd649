from hello_backend.server import main


if __name__ == "__main__":
    main()
